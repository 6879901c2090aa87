import customtkinter as ctk

from api.client import GastosApiClient
from models.category import Category
from models.expense import Expense, ExpenseDraft
from services.errors import ServiceError
from ui.components.confirm_dialog import center_on_master
from ui.components.date_picker import DatePickerWidget
from utils.constants import AMOUNT_MAX, AMOUNT_MIN, PERSONAS
from utils.currency import parse_user_amount
from utils.date_helpers import today_str


class ExpenseForm(ctk.CTkToplevel):
    """Add or edit an expense."""

    _last_date: str = today_str()  # reset to today on each app launch

    def __init__(
        self,
        master,
        client: GastosApiClient,
        categories: list[Category],
        default_persona: str,
        expense: Expense | None = None,
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._client = client
        self._cats = categories
        self._expense = expense
        self.saved = False

        self.title("Edit Expense" if expense else "Add Expense")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        r = 0

        # Persona
        self._label("Paid by:", r)
        self._persona_var = ctk.StringVar(value=expense.persona if expense else default_persona)
        ctk.CTkSegmentedButton(
            self, values=list(PERSONAS), variable=self._persona_var,
        ).grid(row=r, column=1, padx=(0, 16), pady=(16, 4), sticky="w")
        r += 1

        # Description
        self._label("Description:", r)
        self._desc_var = ctk.StringVar(value=expense.description if expense else "")
        ctk.CTkEntry(self, textvariable=self._desc_var, width=240).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        # Amount
        self._label("Amount (€):", r)
        self._amount_var = ctk.StringVar(
            value=f"{expense.amount:.2f}".replace(".", ",") if expense else ""
        )
        ctk.CTkEntry(self, textvariable=self._amount_var, width=240).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        # Date
        self._label("Date:", r)
        self._date_picker = DatePickerWidget(
            self,
            initial_date=expense.date[:10] if expense else ExpenseForm._last_date,
            date_format=date_format,
        )
        self._date_picker.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        r += 1

        # Category
        self._label("Category:", r)
        cat_names = [c.name for c in self._cats]
        current_cat = ""
        if expense and expense.category:
            current_cat = expense.category.name
        elif cat_names:
            current_cat = cat_names[0]
        self._cat_var = ctk.StringVar(value=current_cat)
        ctk.CTkComboBox(
            self, values=cat_names,
            variable=self._cat_var, width=240, state="readonly",
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        # Error
        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=320, anchor="w",
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            btn_frame, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        ctk.CTkButton(btn_frame, text="Save", width=110, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        center_on_master(self)

    def _label(self, text, row):
        ctk.CTkLabel(self, text=text).grid(
            row=row, column=0, padx=(16, 8), pady=(16 if row == 0 else 4, 4), sticky="e"
        )

    def _on_save(self):
        amount = parse_user_amount(self._amount_var.get())
        if amount is None or amount < AMOUNT_MIN or amount > AMOUNT_MAX:
            self._error_var.set(f"Amount must be between {AMOUNT_MIN:.2f} and {AMOUNT_MAX:,.2f}.")
            return

        if not self._date_picker.is_valid():
            self._error_var.set("Invalid date.")
            return

        cat = next((c for c in self._cats if c.name == self._cat_var.get()), None)
        if not cat:
            self._error_var.set("Please select a category.")
            return

        # Keep the original time of day when only the date was edited
        date_str = self._date_picker.get()
        if self._expense and self._expense.date[:10] == date_str:
            date_str = self._expense.date

        draft = ExpenseDraft(
            amount=amount,
            description=self._desc_var.get().strip(),
            category_id=cat.id,
            persona=self._persona_var.get(),
            date=date_str,
        )
        try:
            if self._expense:
                self._client.update_expense(self._expense.id, draft)
            else:
                self._client.create_expense(draft)
            ExpenseForm._last_date = self._date_picker.get()
            self.saved = True
            self.destroy()
        except ServiceError as e:
            self._error_var.set(e.message)
