import customtkinter as ctk
from utils.constants import SEVERITY_COLORS, SEVERITY_ICONS


class AlertBanner(ctk.CTkFrame):
    """Dismissible colored banner for import results and request errors."""

    def __init__(self, master, message: str, severity: str = "info",
                 action_text: str | None = None, action_cmd=None,
                 auto_hide_ms: int | None = None, **kwargs):
        color = SEVERITY_COLORS.get(severity, SEVERITY_COLORS["info"])
        super().__init__(master, fg_color=color, corner_radius=6, **kwargs)
        self.grid_columnconfigure(0, weight=1)

        icon = SEVERITY_ICONS.get(severity, "")
        ctk.CTkLabel(
            self, text=f"{icon}  {message}" if icon else message, text_color="white",
            anchor="w", justify="left", wraplength=900, padx=10, pady=6,
        ).grid(row=0, column=0, sticky="ew")

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=0, column=1, padx=(0, 4))

        if action_text and action_cmd:
            ctk.CTkButton(
                btn_frame, text=action_text, width=60, height=24,
                fg_color="transparent", border_width=1, border_color="white",
                text_color="white", command=action_cmd,
            ).pack(side="left", padx=2)

        ctk.CTkButton(
            btn_frame, text="✕", width=28, height=24,
            fg_color="transparent", text_color="white",
            command=self.destroy,
        ).pack(side="left")

        if auto_hide_ms:
            self.after(auto_hide_ms, self._hide)

    def _hide(self):
        if self.winfo_exists():
            self.destroy()


def show_banner(container, message: str, severity: str = "info", **kwargs) -> AlertBanner:
    """Replace whatever banner the container holds with a new one."""
    for w in container.winfo_children():
        w.destroy()
    banner = AlertBanner(container, message=message, severity=severity, **kwargs)
    banner.pack(fill="x", pady=2)
    return banner
