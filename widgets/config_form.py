"""
Roster Dashboard - Configuration Form

Modal form for entering the Supabase project URL and anon key.
"""

from dataclasses import replace
from typing import Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from services.config import BackendConfig, validate_backend_config
from services.errors import ConfigurationError


class ConfigForm(ModalScreen):
    """
    Modal form for backend credentials.

    Fields:
    - Supabase URL (https://[project-ref].supabase.co)
    - anon key (masked)

    Dismisses with a validated BackendConfig, or None on cancel.
    """

    BINDINGS = [
        Binding("escape", "close", "Back"),
    ]

    DEFAULT_CSS = """
    ConfigForm {
        align: center middle;
    }

    ConfigForm > Container {
        width: 80;
        height: auto;
        max-height: 90%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    ConfigForm .title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    ConfigForm .field-label {
        margin-top: 1;
    }

    ConfigForm Input {
        width: 1fr;
    }

    ConfigForm .hint {
        color: $text-muted;
        margin-top: 1;
    }

    ConfigForm .error {
        color: $error;
        margin-top: 1;
    }

    ConfigForm .buttons {
        margin-top: 1;
        align: center middle;
        height: 3;
    }

    ConfigForm Button {
        margin: 0 1;
        min-width: 12;
    }
    """

    def __init__(self, config: Optional[BackendConfig] = None, **kwargs):
        super().__init__(**kwargs)
        self._config = config or BackendConfig()

    def compose(self) -> ComposeResult:
        with Container():
            yield Label("Supabase Configuration", classes="title")

            yield Label("Project URL:", classes="field-label")
            yield Input(
                value=self._config.url,
                placeholder="https://[project-ref].supabase.co",
                id="url-input",
            )

            yield Label("Anon Key:", classes="field-label")
            yield Input(
                value=self._config.anon_key,
                placeholder="eyJhbGciOi...",
                password=True,
                id="key-input",
            )

            yield Static(
                "Both values are in your project's API settings. They are saved locally.",
                classes="hint",
            )
            yield Static("", id="config-error", classes="error")

            with Horizontal(classes="buttons"):
                yield Button("Save & Connect", id="save-btn", variant="success")
                yield Button("Cancel", id="cancel-btn", variant="error")

    def on_mount(self) -> None:
        self.query_one("#url-input", Input).focus()

    def _read_config(self) -> BackendConfig:
        return replace(
            self._config,
            url=self.query_one("#url-input", Input).value.strip(),
            anon_key=self.query_one("#key-input", Input).value.strip(),
        )

    def submit(self) -> None:
        """Validate and dismiss with the new config, or show the error."""
        config = self._read_config()
        try:
            validate_backend_config(config)
        except ConfigurationError as e:
            self.query_one("#config-error", Static).update(e.message)
            return
        self.dismiss(config)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.submit()

    def action_close(self) -> None:
        """Close this modal."""
        self.dismiss(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "save-btn":
            self.submit()
        elif event.button.id == "cancel-btn":
            self.dismiss(None)
