import tkinter as tk
from tkinter import messagebox, ttk

from .debug_trace import get_logger, setup_debug_logging
from .models.editor_state import describe
from .models.errors import NoActiveSessionError, StoreConnectionError
from .services import actions
from .services.controller import Controller
from .settings import AppSettings
from .views.connection_form import ConnectionForm
from .views.editor_panel import EditorPanel
from .views.outline_panel import OutlinePanel
from .views.tab_bar import TabBar

logger = get_logger(__name__)


def get_version():
    """Get version from package metadata."""
    try:
        from importlib.metadata import version

        return version("redisbrowser")
    except Exception:
        return "Development"


class RedisBrowserApp:
    """Main application window for browsing Redis servers."""

    def _setup_variables(self):
        """Initialize Tkinter variables."""
        self.settings = AppSettings()
        self.status_var = tk.StringVar(value="Not connected")

    def _setup_styles(self):
        """Configure ttk styles for the application."""
        style = ttk.Style()
        style.configure("TButton", padding=6)
        style.configure("TLabel", padding=2)
        style.configure("Error.TLabel", foreground="#D32F2F")  # Red 700 (Material error color)
        style.configure("Status.TLabel", foreground="#1976D2")  # Blue 700

    def _create_widgets(self):
        """Create the main window layout."""
        self.connection_form = ConnectionForm(self.root, self.settings, self._on_connect)

        self.session_frame = ttk.Frame(self.root)
        self.tab_bar = TabBar(self.session_frame, self.dispatch)
        self.tab_bar.pack(fill=tk.X)

        body = ttk.PanedWindow(self.session_frame, orient=tk.HORIZONTAL)
        body.pack(fill=tk.BOTH, expand=True)
        self.outline = OutlinePanel(
            body,
            on_key_select=lambda key: self.dispatch(actions.SelectKey(key)),
            on_toggle=lambda path: self.dispatch(actions.ToggleExpansion(path)),
        )
        body.add(self.outline, weight=1)
        self.editor = EditorPanel(body, self.dispatch)
        body.add(self.editor, weight=3)

        self.status_label = ttk.Label(
            self.root, textvariable=self.status_var, style="Status.TLabel", anchor=tk.W
        )
        self.status_label.pack(side=tk.BOTTOM, fill=tk.X, padx=5)

    def _on_connect(self):
        """Turn the connection form into a Connect action."""
        try:
            config = self.settings.connection_config()
        except ValueError as e:
            messagebox.showerror("Invalid URL", str(e), parent=self.root)
            return
        self.status_var.set(f"Connecting to {config.display_address}...")
        self.root.update_idletasks()
        self.dispatch(actions.Connect(self.settings.label, config))

    def dispatch(self, action: actions.Action):
        """Forward an action to the controller, reporting precondition failures."""
        try:
            return self.controller.dispatch(action)
        except NoActiveSessionError as e:
            logger.warning("%s (%s)", e, type(action).__name__)
            messagebox.showerror("No Server", "Connect to a server first.", parent=self.root)
            return None

    def _on_state_changed(self):
        """Re-render every panel from the controller snapshot."""
        snap = self.controller.snapshot()

        if snap.show_connection_form:
            self.session_frame.pack_forget()
            self.connection_form.pack(fill=tk.BOTH, expand=True)
        else:
            self.connection_form.pack_forget()
            self.session_frame.pack(fill=tk.BOTH, expand=True)

        self.tab_bar.render(snap.tabs, snap.active_index)
        self.outline.render(snap.view, self.controller.delimiter)
        self.editor.render(snap.editor)

        if snap.last_error is not None:
            self.status_label.configure(style="Error.TLabel")
            self.status_var.set(str(snap.last_error))
            if isinstance(snap.last_error, StoreConnectionError):
                messagebox.showerror("Connection Failed", str(snap.last_error), parent=self.root)
        else:
            self.status_label.configure(style="Status.TLabel")
            if snap.active_label is None:
                self.status_var.set("Not connected")
            else:
                session = self.controller.active_session
                key_count = len(session.keys) if session else 0
                self.status_var.set(
                    f"{snap.active_label}: {key_count} keys | {describe(snap.editor)}"
                )

    def __init__(self, root: tk.Tk | None = None):
        self.root = root or tk.Tk()
        self.root.title("Icy Redis Viewer")
        self.root.geometry("1000x650")

        self._setup_variables()
        self._setup_styles()

        self.controller = Controller(delimiter=self.settings.delimiter)
        self.controller.add_observer(self._on_state_changed)

        self._create_widgets()
        self._on_state_changed()

    def _on_closing(self):
        """Close every session connection before exiting."""
        for index in list(self.controller.sessions):
            self.controller.remove_session(index)
        self.root.destroy()

    def run(self):
        """Run the application."""
        logger.info("redisbrowser %s starting", get_version())
        self.root.protocol("WM_DELETE_WINDOW", self._on_closing)
        self.root.mainloop()


def main():
    """Entry point for the application."""
    app = RedisBrowserApp()
    app.run()


def main_debug():
    """Entry point with console debug logging."""
    setup_debug_logging(force_console=True)
    main()


if __name__ == "__main__":
    main()
