import customtkinter as ctk

from api.client import GastosApiClient
from models.category import Category
from services.errors import ConflictError, ServiceError
from ui.components.category_form import CategoryForm
from ui.components.confirm_dialog import ConfirmDialog
from utils.currency import format_currency


class CategoriesTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        client: GastosApiClient,
        notify_refresh,
        report_error,
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._client = client
        self._notify_refresh = notify_refresh
        self._report_error = report_error

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._build_toolbar()
        self._build_list()
        self._load()

    def refresh(self):
        self._load()

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))

        ctk.CTkLabel(
            bar, text="Expense Categories",
            font=ctk.CTkFont(size=13, weight="bold"),
        ).pack(side="left", padx=(12, 16), pady=8)

        ctk.CTkButton(
            bar, text="+ Add Category", command=self._open_add,
        ).pack(side="left", padx=4, pady=6)

    def _build_list(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=1, column=0, sticky="nsew", padx=8, pady=8)
        self._scroll.grid_columnconfigure(0, weight=1)

    def _load(self):
        for w in self._scroll.winfo_children():
            w.destroy()

        try:
            categories = self._client.get_categories()
            stats = {s.category_id: s for s in self._client.get_statistics().by_category}
        except ServiceError as e:
            self._report_error(f"Could not load categories: {e.message}", "error")
            return

        if not categories:
            ctk.CTkLabel(
                self._scroll,
                text="No categories found.",
                text_color="gray60",
            ).grid(row=0, column=0, pady=40)
            return

        # Column headers
        hdr = ctk.CTkFrame(self._scroll, fg_color="transparent")
        hdr.grid(row=0, column=0, sticky="ew", padx=4, pady=(0, 2))
        hdr.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(hdr, text="Color", width=44, anchor="center", text_color="gray60",
                     font=ctk.CTkFont(size=11)).grid(row=0, column=0, padx=(4, 0))
        ctk.CTkLabel(hdr, text="Name", anchor="w", text_color="gray60",
                     font=ctk.CTkFont(size=11)).grid(row=0, column=1, padx=8, sticky="w")
        ctk.CTkLabel(hdr, text="Spent", width=150, anchor="e", text_color="gray60",
                     font=ctk.CTkFont(size=11)).grid(row=0, column=2)
        ctk.CTkLabel(hdr, text="", width=130).grid(row=0, column=3)  # button placeholder

        for idx, cat in enumerate(categories):
            self._add_row(idx + 1, cat, stats.get(cat.id))

    def _add_row(self, idx, cat: Category, stat):
        row = ctk.CTkFrame(
            self._scroll, fg_color=("gray90", "gray20"), corner_radius=8
        )
        row.grid(row=idx, column=0, sticky="ew", padx=4, pady=3)
        row.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(
            row, text="", width=28, height=28, corner_radius=4,
            fg_color=cat.color,
        ).grid(row=0, column=0, padx=(10, 0), pady=8)

        name_frame = ctk.CTkFrame(row, fg_color="transparent")
        name_frame.grid(row=0, column=1, padx=8, sticky="w")
        ctk.CTkLabel(
            name_frame, text=cat.name,
            font=ctk.CTkFont(size=13, weight="bold"), anchor="w",
        ).pack(side="left")
        if cat.description:
            ctk.CTkLabel(
                name_frame, text=cat.description,
                text_color="gray60", font=ctk.CTkFont(size=11),
            ).pack(side="left", padx=(8, 0))

        spent = f"{format_currency(stat.total)} ({stat.count})" if stat else "—"
        ctk.CTkLabel(
            row, text=spent, width=150, anchor="e", text_color="gray60",
        ).grid(row=0, column=2, padx=4)

        btn_frame = ctk.CTkFrame(row, fg_color="transparent")
        btn_frame.grid(row=0, column=3, padx=(4, 10), pady=6)

        ctk.CTkButton(
            btn_frame, text="Edit", width=60, height=26,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=lambda c=cat: self._open_edit(c),
        ).pack(side="left", padx=(0, 4))

        ctk.CTkButton(
            btn_frame, text="Delete", width=65, height=26,
            fg_color="#F44336", hover_color="#D32F2F",
            command=lambda c=cat: self._on_delete(c),
        ).pack(side="left")

    def _open_add(self):
        form = CategoryForm(self.winfo_toplevel(), self._client)
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("category")

    def _open_edit(self, cat: Category):
        form = CategoryForm(self.winfo_toplevel(), self._client, category=cat)
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("category")

    def _on_delete(self, cat: Category):
        dlg = ConfirmDialog(
            self.winfo_toplevel(),
            title="Delete Category",
            message=f"Delete '{cat.name}'? Categories that still have expenses cannot be deleted.",
        )
        if not dlg.result:
            return
        try:
            self._client.delete_category(cat.id)
        except ConflictError as e:
            self._report_error(e.message, "warning")
            return
        except ServiceError as e:
            self._report_error(e.message, "error")
            return
        self._notify_refresh("category")
