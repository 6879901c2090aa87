import logging
from tkinter import filedialog

import customtkinter as ctk

from api.client import GastosApiClient
from models.movement import StatementImport
from models.receipt import ParsedReceipt
from services.errors import ServiceError
from services.import_service import ImportResult, ImportService
from utils.constants import PERSONAS
from utils.currency import format_currency

logger = logging.getLogger(__name__)

_PREVIEW_ROWS = 200


class ImportTab(ctk.CTkFrame):
    """Import tab: bank statement spreadsheets and Mercadona receipts."""

    def __init__(
        self,
        master,
        client: GastosApiClient,
        import_service: ImportService,
        notify_refresh,
        report_error,
        default_persona: str,
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._client = client
        self._importer = import_service
        self._notify_refresh = notify_refresh
        self._report = report_error
        self._categories = []

        self._statement: StatementImport | None = None
        self._receipt: ParsedReceipt | None = None

        self._category_var = ctk.StringVar()
        self._persona_var = ctk.StringVar(value=default_persona)

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)

        scroll = ctk.CTkScrollableFrame(self, fg_color="transparent")
        scroll.grid(row=0, column=0, sticky="nsew")
        scroll.grid_columnconfigure(0, weight=1)

        self._build_target_section(scroll)
        self._build_statement_section(scroll)
        self._build_receipt_section(scroll)
        self.refresh()

    def refresh(self):
        try:
            self._categories = self._client.get_categories()
        except ServiceError as e:
            self._report(f"Could not load categories: {e.message}", "error")
            self._categories = []
        names = [c.name for c in self._categories]
        self._category_combo.configure(values=names)
        if self._category_var.get() not in names:
            self._category_var.set(names[0] if names else "")

    # ── Section 1: target category and person ─────────────────────────────────

    def _build_target_section(self, parent):
        section = self._make_section(parent, "Save Imported Expenses As", row=0)

        ctk.CTkLabel(section, text="Category:", anchor="e", width=90).grid(
            row=0, column=0, padx=(8, 4), pady=6, sticky="e"
        )
        self._category_combo = ctk.CTkComboBox(
            section, values=[], variable=self._category_var,
            width=200, state="readonly",
        )
        self._category_combo.grid(row=0, column=1, padx=4, pady=6, sticky="w")

        ctk.CTkLabel(section, text="Paid by:", anchor="e", width=90).grid(
            row=1, column=0, padx=(8, 4), pady=6, sticky="e"
        )
        ctk.CTkSegmentedButton(
            section, values=list(PERSONAS), variable=self._persona_var,
        ).grid(row=1, column=1, padx=4, pady=6, sticky="w")

    def _selected_category_id(self) -> int | None:
        cat = next((c for c in self._categories if c.name == self._category_var.get()), None)
        return cat.id if cat else None

    # ── Section 2: bank statement ─────────────────────────────────────────────

    def _build_statement_section(self, parent):
        section = self._make_section(parent, "Bank Statement (.xlsx / .xls)", row=1)

        btn_frame = ctk.CTkFrame(section, fg_color="transparent")
        btn_frame.grid(row=0, column=0, sticky="w", padx=8, pady=6)
        ctk.CTkButton(
            btn_frame, text="Choose File…", width=120,
            command=self._pick_statement,
        ).pack(side="left", padx=4)
        self._save_statement_btn = ctk.CTkButton(
            btn_frame, text="Save Expenses", width=130, state="disabled",
            command=self._save_statement,
        )
        self._save_statement_btn.pack(side="left", padx=4)
        self._save_balance_btn = ctk.CTkButton(
            btn_frame, text="Save Balance", width=120, state="disabled",
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._save_balance,
        )
        self._save_balance_btn.pack(side="left", padx=4)

        self._statement_status_var = ctk.StringVar()
        ctk.CTkLabel(
            section, textvariable=self._statement_status_var,
            text_color="gray60", font=ctk.CTkFont(size=11),
            anchor="w", justify="left", wraplength=760,
        ).grid(row=1, column=0, sticky="w", padx=12, pady=(0, 4))

        self._statement_preview = ctk.CTkTextbox(section, height=200, wrap="none")
        self._statement_preview.grid(row=2, column=0, sticky="ew", padx=8, pady=(0, 6))
        self._statement_preview.configure(state="disabled")

    def _pick_statement(self):
        path = filedialog.askopenfilename(
            title="Open bank statement",
            filetypes=[("Spreadsheets", "*.xlsx *.xls"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            statement = self._importer.preview_statement(path)
        except ServiceError as e:
            self._statement = None
            self._update_statement_buttons()
            self._report(e.message, "error")
            return

        self._statement = statement
        lines = []
        for m in statement.movements[:_PREVIEW_ROWS]:
            day = m.operation_date.strftime("%d/%m/%Y") if m.operation_date else "--/--/----"
            lines.append(f"{day}  {format_currency(m.amount):>14}  {m.concept}")
        if len(statement.movements) > _PREVIEW_ROWS:
            lines.append(f"… {len(statement.movements) - _PREVIEW_ROWS} more")
        self._set_text(self._statement_preview, "\n".join(lines))

        if statement.diagnostic:
            self._statement_status_var.set(statement.diagnostic)
            self._report(statement.diagnostic, "warning")
        else:
            status = (
                f"{len(statement.movements)} movement(s), total "
                f"{format_currency(statement.total_amount)}"
            )
            if statement.ending_balance is not None:
                status += f" · ending balance {format_currency(statement.ending_balance)}"
            self._statement_status_var.set(status)
        self._update_statement_buttons()

    def _update_statement_buttons(self):
        st = self._statement
        has_rows = st is not None and bool(st.movements)
        has_balance = st is not None and st.ending_balance is not None
        self._save_statement_btn.configure(state="normal" if has_rows else "disabled")
        self._save_balance_btn.configure(state="normal" if has_balance else "disabled")

    def _save_statement(self):
        if self._statement is None:
            return
        try:
            result = self._importer.save_statement(
                self._statement, self._selected_category_id(), self._persona_var.get()
            )
        except ServiceError as e:
            self._report(e.message, "error")
            return
        self._after_save(result)
        if result.ok:
            self._statement = None
            self._update_statement_buttons()

    def _save_balance(self):
        if self._statement is None or self._statement.ending_balance is None:
            return
        try:
            self._importer.save_balance(self._statement.ending_balance)
        except ServiceError as e:
            self._report(e.message, "error")
            return
        self._save_balance_btn.configure(state="disabled")
        self._report(
            f"Balance of {format_currency(self._statement.ending_balance)} saved.", "success"
        )
        self._notify_refresh("balance")

    # ── Section 3: receipt ────────────────────────────────────────────────────

    def _build_receipt_section(self, parent):
        section = self._make_section(parent, "Mercadona Receipt (.pdf)", row=2)

        btn_frame = ctk.CTkFrame(section, fg_color="transparent")
        btn_frame.grid(row=0, column=0, sticky="w", padx=8, pady=6)
        ctk.CTkButton(
            btn_frame, text="Choose PDF…", width=120,
            command=self._pick_receipt,
        ).pack(side="left", padx=4)
        self._save_receipt_btn = ctk.CTkButton(
            btn_frame, text="Save Expenses", width=130, state="disabled",
            command=self._save_receipt,
        )
        self._save_receipt_btn.pack(side="left", padx=4)

        self._receipt_status_var = ctk.StringVar()
        ctk.CTkLabel(
            section, textvariable=self._receipt_status_var,
            text_color="gray60", font=ctk.CTkFont(size=11), anchor="w",
        ).grid(row=1, column=0, sticky="w", padx=12, pady=(0, 4))

        self._receipt_preview = ctk.CTkTextbox(section, height=200, wrap="none")
        self._receipt_preview.grid(row=2, column=0, sticky="ew", padx=8, pady=(0, 6))
        self._receipt_preview.configure(state="disabled")

    def _pick_receipt(self):
        path = filedialog.askopenfilename(
            title="Open receipt",
            filetypes=[("PDF files", "*.pdf"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            receipt = self._importer.preview_receipt(path)
        except ServiceError as e:
            self._receipt = None
            self._save_receipt_btn.configure(state="disabled")
            self._report(e.message, "error")
            return

        self._receipt = receipt
        lines = [
            f"{p.quantity:>3} x {p.description:<32} {format_currency(p.amount):>12}"
            for p in receipt.products
        ]
        self._set_text(self._receipt_preview, "\n".join(lines))

        when = receipt.purchased_at.strftime("%d/%m/%Y %H:%M") if receipt.purchased_at else "unknown date"
        total = format_currency(receipt.total) if receipt.total is not None else "?"
        self._receipt_status_var.set(
            f"{len(receipt.products)} product(s) · {when} · receipt total {total}"
            f" · products sum {format_currency(receipt.products_total)}"
        )
        if not receipt.products:
            self._report("No products were recognised in this receipt.", "warning")
        elif receipt.total is not None and abs(receipt.total - receipt.products_total) > 0.01:
            self._report("Product amounts do not add up to the receipt total.", "warning")
        self._save_receipt_btn.configure(state="normal" if receipt.products else "disabled")

    def _save_receipt(self):
        if self._receipt is None:
            return
        try:
            result = self._importer.save_receipt(
                self._receipt, self._selected_category_id(), self._persona_var.get()
            )
        except ServiceError as e:
            self._report(e.message, "error")
            return
        self._after_save(result)
        if result.ok:
            self._receipt = None
            self._save_receipt_btn.configure(state="disabled")

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _after_save(self, result: ImportResult):
        self._report(result.summary(), "success" if result.ok else "warning")
        if result.created:
            self._notify_refresh("expense")

    @staticmethod
    def _set_text(box: ctk.CTkTextbox, text: str):
        box.configure(state="normal")
        box.delete("1.0", "end")
        box.insert("1.0", text)
        box.configure(state="disabled")

    def _make_section(self, parent, title: str, row: int) -> ctk.CTkFrame:
        """Create a labelled card section and return its inner frame."""
        outer = ctk.CTkFrame(parent, corner_radius=8)
        outer.grid(row=row, column=0, sticky="ew", padx=12, pady=8)
        outer.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            outer,
            text=title,
            font=ctk.CTkFont(size=14, weight="bold"),
            anchor="w",
        ).grid(row=0, column=0, sticky="w", padx=12, pady=(10, 4))

        inner = ctk.CTkFrame(outer, fg_color="transparent")
        inner.grid(row=1, column=0, sticky="ew", padx=4, pady=(0, 8))
        inner.grid_columnconfigure(0, weight=1)
        return inner
