import customtkinter as ctk

from api.client import GastosApiClient
from services.import_service import ImportService
from ui.components.alert_banner import show_banner
from ui.tabs.categories_tab import CategoriesTab
from ui.tabs.dashboard_tab import DashboardTab
from ui.tabs.expenses_tab import ExpensesTab
from ui.tabs.import_tab import ImportTab
from utils.app_config import set_default_persona
from utils.constants import APP_HEIGHT, APP_NAME, APP_WIDTH, PERSONAS


_REFRESH_SCOPES: dict[str, set[str]] = {
    "expense":  {"dashboard", "expenses", "categories"},
    "category": {"dashboard", "expenses", "categories", "import"},
    "balance":  {"dashboard"},
    "full":     {"dashboard", "expenses", "categories", "import"},
}

_AUTO_HIDE_MS = {"success": 5000, "info": 8000}


class AppWindow(ctk.CTk):
    def __init__(
        self,
        client: GastosApiClient,
        import_service: ImportService,
        default_persona: str,
        api_url: str = "",
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._client = client
        self._import_svc = import_service
        self._date_format = date_format
        self._persona_var = ctk.StringVar(value=default_persona)

        self.title(APP_NAME)
        self.minsize(APP_WIDTH, APP_HEIGHT)
        self.geometry(f"{APP_WIDTH}x{APP_HEIGHT}")

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._build_header_bar(api_url)
        self._build_banner_area()
        self._build_tabs()

    # ── Header bar ──────────────────────────────────────────────────────────
    def _build_header_bar(self, api_url: str):
        bar = ctk.CTkFrame(self, fg_color=("gray85", "gray15"), corner_radius=0, height=44)
        bar.grid(row=0, column=0, sticky="ew")
        bar.grid_propagate(False)

        ctk.CTkLabel(
            bar, text=APP_NAME, font=ctk.CTkFont(size=15, weight="bold"),
        ).pack(side="left", padx=(12, 16), pady=8)

        ctk.CTkLabel(bar, text="I am:", anchor="e").pack(side="left", padx=(0, 4))
        ctk.CTkSegmentedButton(
            bar, values=list(PERSONAS), variable=self._persona_var,
            command=set_default_persona,
        ).pack(side="left", padx=4)

        ctk.CTkLabel(
            bar, text=f"API: {api_url}", text_color="gray60", font=ctk.CTkFont(size=11),
        ).pack(side="right", padx=12)

        ctk.CTkButton(
            bar, text="Refresh", width=80,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=lambda: self.notify_tabs_refresh("full"),
        ).pack(side="right", padx=4)

    def _build_banner_area(self):
        self._banner_frame = ctk.CTkFrame(self, fg_color="transparent", height=0)
        self._banner_frame.grid(row=1, column=0, sticky="ew", padx=8)

    def _build_tabs(self):
        self._tabview = ctk.CTkTabview(self)
        self._tabview.grid(row=2, column=0, sticky="nsew", padx=8, pady=(0, 8))

        for tab_name in ("Dashboard", "Expenses", "Categories", "Import"):
            self._tabview.add(tab_name)
            self._tabview.tab(tab_name).grid_columnconfigure(0, weight=1)
            self._tabview.tab(tab_name).grid_rowconfigure(0, weight=1)

        persona = self._persona_var.get()

        self._dashboard_tab = DashboardTab(
            self._tabview.tab("Dashboard"),
            client=self._client,
            report_error=self.show_message,
            date_format=self._date_format,
        )
        self._dashboard_tab.grid(row=0, column=0, sticky="nsew")

        self._expenses_tab = ExpensesTab(
            self._tabview.tab("Expenses"),
            client=self._client,
            notify_refresh=self.notify_tabs_refresh,
            report_error=self.show_message,
            default_persona=persona,
            date_format=self._date_format,
        )
        self._expenses_tab.grid(row=0, column=0, sticky="nsew")

        self._categories_tab = CategoriesTab(
            self._tabview.tab("Categories"),
            client=self._client,
            notify_refresh=self.notify_tabs_refresh,
            report_error=self.show_message,
        )
        self._categories_tab.grid(row=0, column=0, sticky="nsew")

        self._import_tab = ImportTab(
            self._tabview.tab("Import"),
            client=self._client,
            import_service=self._import_svc,
            notify_refresh=self.notify_tabs_refresh,
            report_error=self.show_message,
            default_persona=persona,
        )
        self._import_tab.grid(row=0, column=0, sticky="nsew")

    # ── Refresh ──────────────────────────────────────────────────────────────
    def notify_tabs_refresh(self, scope: str = "full"):
        tabs = _REFRESH_SCOPES.get(scope, _REFRESH_SCOPES["full"])
        if "dashboard"  in tabs: self._dashboard_tab.refresh()
        if "expenses"   in tabs: self._expenses_tab.refresh()
        if "categories" in tabs: self._categories_tab.refresh()
        if "import"     in tabs: self._import_tab.refresh()

    # ── Banners ──────────────────────────────────────────────────────────────
    def show_message(self, message: str, severity: str = "info"):
        show_banner(
            self._banner_frame, message, severity,
            auto_hide_ms=_AUTO_HIDE_MS.get(severity),
        )
