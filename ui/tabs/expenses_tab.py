import csv
import logging
from tkinter import filedialog

import customtkinter as ctk

from api.client import GastosApiClient
from models.expense import Expense, ExpenseFilter
from services.errors import ServiceError
from services.expense_service import export_rows
from ui.components.confirm_dialog import ConfirmDialog
from ui.components.date_picker import DatePickerWidget
from ui.components.expense_form import ExpenseForm
from utils.constants import PAGE_SIZE_DEFAULT, PERSONAS
from utils.currency import format_currency, parse_user_amount
from utils.date_helpers import format_display_date, today_str

logger = logging.getLogger(__name__)

_ALL = "All"


class ExpensesTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        client: GastosApiClient,
        notify_refresh,   # callable(scope)
        report_error,     # callable(message, severity)
        default_persona: str,
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._client = client
        self._notify_refresh = notify_refresh
        self._report_error = report_error
        self._default_persona = default_persona
        self._date_format = date_format
        self._categories = []
        self._page = 1

        self._persona_var = ctk.StringVar(value=_ALL)
        self._category_var = ctk.StringVar(value=_ALL)
        self._min_var = ctk.StringVar()
        self._max_var = ctk.StringVar()
        self._search_var = ctk.StringVar()
        self._page_var = ctk.StringVar()

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(3, weight=1)

        self._build_filter_bar()
        self._build_action_bar()
        self._build_header()
        self._build_list()
        self._build_pager()
        self.refresh()

    def refresh(self):
        self._load_categories()
        self._load()

    # ── Filter bar ──────────────────────────────────────────────────────────
    def _build_filter_bar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))

        ctk.CTkSegmentedButton(
            bar,
            values=[_ALL, *PERSONAS],
            variable=self._persona_var,
            command=lambda _: self._apply_filters(),
        ).pack(side="left", padx=(8, 8), pady=6)

        self._category_combo = ctk.CTkComboBox(
            bar, values=[_ALL], variable=self._category_var,
            width=150, state="readonly",
            command=lambda _: self._apply_filters(),
        )
        self._category_combo.pack(side="left", padx=4)

        ctk.CTkLabel(bar, text="From").pack(side="left", padx=(8, 2))
        self._from_picker = DatePickerWidget(bar, date_format=self._date_format, allow_empty=True)
        self._from_picker.pack(side="left")
        ctk.CTkLabel(bar, text="To").pack(side="left", padx=(8, 2))
        self._to_picker = DatePickerWidget(bar, date_format=self._date_format, allow_empty=True)
        self._to_picker.pack(side="left")

        for var, placeholder in ((self._min_var, "Min €"), (self._max_var, "Max €")):
            entry = ctk.CTkEntry(bar, textvariable=var, placeholder_text=placeholder, width=70)
            entry.pack(side="left", padx=(8, 0))
            entry.bind("<Return>", lambda _e: self._apply_filters())

        search = ctk.CTkEntry(
            bar, textvariable=self._search_var,
            placeholder_text="Search…", width=150,
        )
        search.pack(side="left", padx=8)
        search.bind("<Return>", lambda _e: self._apply_filters())

        ctk.CTkButton(bar, text="Apply", width=60, command=self._apply_filters).pack(
            side="left", padx=(0, 4)
        )
        ctk.CTkButton(
            bar, text="Clear", width=60,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._clear_filters,
        ).pack(side="left", padx=(0, 8))

    def _build_action_bar(self):
        bar = ctk.CTkFrame(self, fg_color="transparent")
        bar.grid(row=1, column=0, sticky="ew", padx=8, pady=(6, 0))
        self._summary_label = ctk.CTkLabel(bar, text="", text_color="gray60", anchor="w")
        self._summary_label.pack(side="left", padx=4)
        ctk.CTkButton(bar, text="Export CSV", width=100, command=self._export_csv).pack(
            side="right", padx=(4, 0)
        )
        ctk.CTkButton(bar, text="+ Expense", width=100, command=self._open_add_form).pack(
            side="right", padx=4
        )

    # ── Column headers ───────────────────────────────────────────────────────
    def _build_header(self):
        hdr = ctk.CTkFrame(self, fg_color=("gray82", "gray22"), corner_radius=0)
        hdr.grid(row=2, column=0, sticky="ew", padx=8, pady=(4, 0))
        cols = [("Date", 85), ("Person", 60), ("Category", 130),
                ("Description", 320), ("Amount", 90), ("Actions", 100)]
        for i, (label, width) in enumerate(cols):
            ctk.CTkLabel(
                hdr, text=label, width=width, anchor="w",
                font=ctk.CTkFont(weight="bold"),
            ).grid(row=0, column=i, padx=4, pady=4, sticky="w")

    def _build_list(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=3, column=0, sticky="nsew", padx=8, pady=(0, 4))
        self._scroll.grid_columnconfigure(0, weight=1)

    def _build_pager(self):
        pager = ctk.CTkFrame(self, fg_color="transparent")
        pager.grid(row=4, column=0, pady=(0, 8))
        self._prev_btn = ctk.CTkButton(pager, text="◀", width=28, command=self._prev_page)
        self._prev_btn.pack(side="left")
        ctk.CTkLabel(pager, textvariable=self._page_var, width=140, anchor="center").pack(
            side="left", padx=8
        )
        self._next_btn = ctk.CTkButton(pager, text="▶", width=28, command=self._next_page)
        self._next_btn.pack(side="left")

    # ── Data ─────────────────────────────────────────────────────────────────
    def _load_categories(self):
        try:
            self._categories = self._client.get_categories()
        except ServiceError as e:
            self._report_error(f"Could not load categories: {e.message}", "error")
            self._categories = []
        names = [_ALL] + [c.name for c in self._categories]
        self._category_combo.configure(values=names)
        if self._category_var.get() not in names:
            self._category_var.set(_ALL)

    def _build_filter(self, page: int = 1, page_size: int = PAGE_SIZE_DEFAULT) -> ExpenseFilter:
        persona = self._persona_var.get()
        cat = next((c for c in self._categories if c.name == self._category_var.get()), None)
        return ExpenseFilter(
            persona=None if persona == _ALL else persona,
            category_id=cat.id if cat else None,
            date_from=self._from_picker.get() or None,
            date_to=self._to_picker.get() or None,
            amount_min=parse_user_amount(self._min_var.get()),
            amount_max=parse_user_amount(self._max_var.get()),
            description=self._search_var.get().strip() or None,
            page=page,
            page_size=page_size,
        )

    def _apply_filters(self):
        if not (self._from_picker.is_valid() and self._to_picker.is_valid()):
            self._report_error("Invalid date in filters.", "warning")
            return
        self._page = 1
        self._load()

    def _clear_filters(self):
        self._persona_var.set(_ALL)
        self._category_var.set(_ALL)
        self._from_picker.clear()
        self._to_picker.clear()
        for var in (self._min_var, self._max_var, self._search_var):
            var.set("")
        self._apply_filters()

    def _prev_page(self):
        if self._page > 1:
            self._page -= 1
            self._load()

    def _next_page(self):
        self._page += 1
        self._load()

    def _load(self):
        for w in self._scroll.winfo_children():
            w.destroy()

        try:
            page = self._client.search_expenses(self._build_filter(self._page))
        except ServiceError as e:
            self._report_error(e.message, "error")
            return

        # A delete can leave us past the last page
        if not page.items and page.page > 1 and page.total_items:
            self._page = page.total_pages
            self._load()
            return

        self._page_var.set(f"Page {page.page} of {page.total_pages}")
        self._prev_btn.configure(state="normal" if page.has_previous else "disabled")
        self._next_btn.configure(state="normal" if page.has_next else "disabled")
        shown = sum(e.amount for e in page.items)
        self._summary_label.configure(
            text=f"{page.total_items} expense(s) · this page {format_currency(shown)}"
        )

        if not page.items:
            ctk.CTkLabel(
                self._scroll, text="No expenses match these filters.",
                text_color="gray60",
            ).grid(row=0, column=0, pady=20)
            return

        for idx, expense in enumerate(page.items):
            self._add_row(idx, expense)

    def _add_row(self, idx: int, expense: Expense):
        bg = ("gray92", "gray17") if idx % 2 == 0 else ("gray88", "gray21")
        row = ctk.CTkFrame(self._scroll, fg_color=bg, corner_radius=4)
        row.grid(row=idx, column=0, sticky="ew", pady=1, padx=2)

        ctk.CTkLabel(
            row, text=format_display_date(expense.date, self._date_format), width=85, anchor="w"
        ).grid(row=0, column=0, padx=4, pady=4)
        ctk.CTkLabel(row, text=expense.persona, width=60, anchor="w").grid(row=0, column=1, padx=4)

        cat = expense.category
        ctk.CTkLabel(
            row, text=cat.name if cat else "—", width=130, anchor="w",
            text_color=cat.color if cat else "gray",
        ).grid(row=0, column=2, padx=4)
        ctk.CTkLabel(row, text=expense.description, width=320, anchor="w").grid(
            row=0, column=3, padx=4
        )
        ctk.CTkLabel(
            row, text=format_currency(expense.amount), width=90, anchor="e",
            text_color="#F44336",
        ).grid(row=0, column=4, padx=4)

        acts = ctk.CTkFrame(row, fg_color="transparent")
        acts.grid(row=0, column=5, padx=(4, 6))
        ctk.CTkButton(
            acts, text="Edit", width=44, height=24,
            command=lambda e=expense: self._open_edit_form(e),
        ).pack(side="left", padx=2)
        ctk.CTkButton(
            acts, text="Del", width=38, height=24,
            fg_color="#F44336", hover_color="#D32F2F",
            command=lambda e=expense: self._delete_expense(e),
        ).pack(side="left")

    # ── Actions ──────────────────────────────────────────────────────────────
    def _open_add_form(self):
        if not self._categories:
            self._report_error("Create a category before adding expenses.", "warning")
            return
        form = ExpenseForm(
            self.winfo_toplevel(), self._client, self._categories,
            default_persona=self._default_persona,
            date_format=self._date_format,
        )
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("expense")

    def _open_edit_form(self, expense: Expense):
        form = ExpenseForm(
            self.winfo_toplevel(), self._client, self._categories,
            default_persona=self._default_persona,
            expense=expense,
            date_format=self._date_format,
        )
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("expense")

    def _delete_expense(self, expense: Expense):
        dlg = ConfirmDialog(
            self.winfo_toplevel(),
            "Delete Expense",
            f"Delete '{expense.description}' ({format_currency(expense.amount)})?",
        )
        if not dlg.result:
            return
        try:
            self._client.delete_expense(expense.id)
        except ServiceError as e:
            self._report_error(e.message, "error")
            return
        self._notify_refresh("expense")

    def _export_csv(self):
        try:
            expenses = self._client.list_all_expenses(self._build_filter())
        except ServiceError as e:
            self._report_error(e.message, "error")
            return
        rows = export_rows(expenses, self._date_format)

        path = filedialog.asksaveasfilename(
            defaultextension=".csv",
            filetypes=[("CSV files", "*.csv")],
            initialfile=f"gastos_{today_str()}.csv",
        )
        if not path:
            return
        try:
            with open(path, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerows(rows)
        except OSError as e:
            logger.error("CSV export to %s failed: %s", path, e)
            self._report_error(f"Could not write {path}: {e}", "error")
            return
        self._report_error(f"Exported {len(rows) - 1} expense(s).", "success")
