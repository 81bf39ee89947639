"""App Kivy que muestra la pantalla de configuracion de Share."""

from __future__ import annotations

import logging
import traceback
from dataclasses import replace
from pathlib import Path

from share_client_ui.editor import AuthenticationEditor
from share_client_ui.manager import ShareClientManager
from share_client_ui.model import GlucoseUnit
from share_client_ui.preferences import DisplayGlucosePreference
from share_client_ui.screen import (
    Alignment,
    DeletionConfirmation,
    Row,
    SettingsScreen,
)
from share_client_ui.sources.share_export import export_source
from share_client_ui.storage import AppConfig, SQLiteStore
from share_client_ui.strings import localized

logger = logging.getLogger(__name__)

DELETE_COLOR = (0.9, 0.2, 0.2, 1)


def run_app() -> int:
    """Lanza la app Kivy."""
    from kivy.app import App
    from kivy.clock import Clock
    from kivy.uix.boxlayout import BoxLayout
    from kivy.uix.button import Button
    from kivy.uix.checkbox import CheckBox
    from kivy.uix.gridlayout import GridLayout
    from kivy.uix.label import Label
    from kivy.uix.popup import Popup
    from kivy.uix.scrollview import ScrollView
    from kivy.uix.spinner import Spinner
    from kivy.uix.textinput import TextInput

    class ShareSettingsApp(App):
        """Main Kivy app."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.store = SQLiteStore(Path.cwd() / "share_client_ui.sqlite3")
            self.app_config = self.store.load_config()
            self.manager = ShareClientManager(store=self.store)
            self.preference = DisplayGlucosePreference(self.app_config.glucose_unit)
            self.screen = SettingsScreen(
                self.manager,
                self.preference,
                self.app_config.allows_deletion,
                on_complete=self.stop,
                dispatch_main=lambda callback: Clock.schedule_once(
                    lambda _dt: callback()
                ),
                on_render=self._on_render,
            )
            self.table: GridLayout | None = None
            self.status: Label | None = None
            self._row_buttons: dict[Row, Button] = {}

        def build(self) -> BoxLayout:
            self.title = self.screen.title
            root = BoxLayout(orientation="vertical", spacing=8, padding=10)

            actions = BoxLayout(
                orientation="horizontal",
                spacing=8,
                size_hint_y=None,
                height=40,
            )
            unit_btn = Button(text="mg/dL <-> mmol/L")
            load_btn = Button(text="Load Share export")
            settings_btn = Button(text="Configuracion")
            done_btn = Button(text=localized("done"))
            unit_btn.bind(on_press=self._toggle_unit)
            load_btn.bind(on_press=self._on_load_export)
            settings_btn.bind(on_press=self._open_config_popup)
            done_btn.bind(on_press=lambda *_args: self.screen.done())
            actions.add_widget(unit_btn)
            actions.add_widget(load_btn)
            actions.add_widget(settings_btn)
            actions.add_widget(done_btn)
            root.add_widget(actions)

            self.status = Label(text="", size_hint_y=None, height=30)
            root.add_widget(self.status)

            self.table = GridLayout(cols=1, spacing=4, size_hint_y=None)
            self.table.bind(minimum_height=self.table.setter("height"))
            scroll = ScrollView()
            scroll.add_widget(self.table)
            root.add_widget(scroll)

            self._render_table()
            return root

        def on_stop(self) -> None:
            self.screen.close()

        def _on_render(self, row: Row | None) -> None:
            if row is not None and row in self._row_buttons:
                self._row_buttons[row].text = self._row_text(row)
                return
            self._render_table()

        def _render_table(self) -> None:
            if self.table is None:
                return
            self.table.clear_widgets()
            self._row_buttons = {}
            for section in self.screen.sections():
                if section.header:
                    self.table.add_widget(
                        Label(
                            text=section.header.upper(),
                            size_hint_y=None,
                            height=32,
                            halign="left",
                        )
                    )
                for row in section.rows:
                    cell = self.screen.cell(row)
                    btn = Button(
                        text=self._row_text(row),
                        size_hint_y=None,
                        height=44,
                        halign="center"
                        if cell.alignment is Alignment.CENTER
                        else "left",
                    )
                    if cell.destructive:
                        btn.color = DELETE_COLOR
                    btn.bind(on_press=lambda _btn, r=row: self._on_select(r))
                    self._row_buttons[row] = btn
                    self.table.add_widget(btn)

        def _row_text(self, row: Row) -> str:
            cell = self.screen.cell(row)
            if cell.detail is None:
                return cell.text
            return f"{cell.text}    {cell.detail}"

        def _on_select(self, row: Row) -> None:
            presented = self.screen.select(row)
            if isinstance(presented, AuthenticationEditor):
                self._open_authentication_popup(presented)
            elif isinstance(presented, DeletionConfirmation):
                self._open_delete_popup(presented)

        def _toggle_unit(self, _: object) -> None:
            unit = (
                GlucoseUnit.MMOL_L
                if self.preference.unit is GlucoseUnit.MG_DL
                else GlucoseUnit.MG_DL
            )
            self._apply_config(replace(self.app_config, glucose_unit=unit))

        def _on_load_export(self, _: object) -> None:
            try:
                source = export_source(self.app_config.export_dir)
                export_file = source.newest_json()
                self.manager.backfill(source.load_readings(export_file))
            except Exception as exc:
                self._show_error("cargar export", exc)
                return
            self.screen.reload()
            if self.status is not None:
                self.status.text = f"Export cargado: {export_file.name}"

        def _apply_config(self, config: AppConfig) -> None:
            self.app_config = config
            self.store.save_config(config)
            self.preference.unit = config.glucose_unit
            if config.allows_deletion != self.screen.allows_deletion:
                self.screen.allows_deletion = config.allows_deletion
                self.screen.reload()

        def _open_config_popup(self, _: object) -> None:
            content = BoxLayout(orientation="vertical", spacing=8, padding=8)

            dir_row = BoxLayout(orientation="horizontal", size_hint_y=None, height=36)
            dir_row.add_widget(Label(text="Carpeta exports", size_hint_x=0.3))
            dir_input = TextInput(text=self.app_config.export_dir, multiline=False)
            dir_row.add_widget(dir_input)
            content.add_widget(dir_row)

            delete_row = BoxLayout(
                orientation="horizontal", size_hint_y=None, height=36
            )
            delete_check = CheckBox(
                active=self.app_config.allows_deletion, size_hint_x=0.3
            )
            delete_row.add_widget(delete_check)
            delete_row.add_widget(Label(text=localized("delete_cgm")))
            content.add_widget(delete_row)

            footer = BoxLayout(orientation="horizontal", size_hint_y=None, height=42)
            cancel_btn = Button(text=localized("cancel"))
            save_btn = Button(text="Guardar")
            footer.add_widget(cancel_btn)
            footer.add_widget(save_btn)
            content.add_widget(footer)

            popup = Popup(
                title="Configuracion",
                content=content,
                size_hint=(0.8, 0.5),
            )
            cancel_btn.bind(on_press=lambda *_args: popup.dismiss())

            def save(*_: object) -> None:
                self._apply_config(
                    config_from_form(
                        self.app_config, dir_input.text, delete_check.active
                    )
                )
                popup.dismiss()
                if self.status is not None:
                    self.status.text = "Configuracion guardada."

            save_btn.bind(on_press=save)
            popup.open()

        def _open_authentication_popup(self, editor: AuthenticationEditor) -> None:
            inputs: dict[str, TextInput | Spinner] = {}
            form = BoxLayout(orientation="vertical", spacing=8, padding=8)
            for key, field in zip(editor.values, editor.fields):
                row = BoxLayout(orientation="horizontal", size_hint_y=None, height=36)
                row.add_widget(Label(text=field.title, size_hint_x=0.3))
                current = editor.values[key] or ""
                widget: TextInput | Spinner
                if field.options:
                    titles = [option.title for option in field.options]
                    widget = Spinner(
                        text=editor.display_value(field, current) or titles[0],
                        values=titles,
                    )
                else:
                    widget = TextInput(
                        text=current,
                        multiline=False,
                        password=field.is_secret,
                    )
                inputs[key] = widget
                row.add_widget(widget)
                form.add_widget(row)
            if editor.helper_message:
                form.add_widget(Label(text=editor.helper_message))

            footer = BoxLayout(orientation="horizontal", size_hint_y=None, height=42)
            cancel_btn = Button(text=localized("cancel"))
            save_btn = Button(text="Save")
            footer.add_widget(cancel_btn)
            footer.add_widget(save_btn)
            form.add_widget(footer)

            popup = Popup(
                title=localized("credentials"),
                content=form,
                size_hint=(0.8, 0.6),
            )
            cancel_btn.bind(on_press=lambda *_args: popup.dismiss())

            def save(*_: object) -> None:
                values: dict[str, str | None] = {}
                for key, field in zip(editor.values, editor.fields):
                    text = inputs[key].text
                    for option in field.options or ():
                        if option.title == text:
                            text = option.value
                    values[key] = text
                try:
                    editor.update(values)
                except ValueError as exc:
                    self._show_error("guardar credenciales", exc)
                    return
                popup.dismiss()

            save_btn.bind(on_press=save)
            popup.open()

        def _open_delete_popup(self, confirmation: DeletionConfirmation) -> None:
            content = BoxLayout(orientation="vertical", spacing=8, padding=8)
            content.add_widget(Label(text=confirmation.message))
            buttons = BoxLayout(orientation="horizontal", size_hint_y=None, height=42)
            confirm_btn = Button(text=confirmation.confirm_action.title)
            confirm_btn.color = DELETE_COLOR
            cancel_btn = Button(text=confirmation.cancel_action.title)
            buttons.add_widget(confirm_btn)
            buttons.add_widget(cancel_btn)
            content.add_widget(buttons)
            popup = Popup(title="", content=content, size_hint=(0.7, 0.4))

            def confirm(*_: object) -> None:
                popup.dismiss()
                confirmation.confirm()

            def cancel(*_: object) -> None:
                popup.dismiss()
                confirmation.cancel()

            confirm_btn.bind(on_press=confirm)
            cancel_btn.bind(on_press=cancel)
            popup.open()

        def _show_error(self, action: str, exc: Exception) -> None:
            error_type = type(exc).__name__
            logger.error("Error al %s: %s", action, exc)
            logger.debug("%s", traceback.format_exc())
            if self.status is not None:
                self.status.text = f"Error al {action} ({error_type}): {exc}"

    ShareSettingsApp().run()
    return 0


def config_from_form(
    current: AppConfig, export_dir: str, allows_deletion: bool
) -> AppConfig:
    """Config resultante del popup de configuracion."""
    return replace(
        current,
        export_dir=export_dir.strip(),
        allows_deletion=bool(allows_deletion),
    )
