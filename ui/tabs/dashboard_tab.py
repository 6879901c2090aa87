import tkinter as tk

import customtkinter as ctk
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

from api.client import GastosApiClient
from models.statistics import ExpenseStatistics
from services.errors import ServiceError
from utils.constants import MOST_USED_DEFAULT
from utils.currency import format_currency
from utils.date_helpers import format_display_date


class DashboardTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        client: GastosApiClient,
        report_error,     # callable(message, severity)
        date_format: str = "DD/MM/YYYY",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._client = client
        self._report_error = report_error
        self._date_format = date_format

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._build_summary_cards()
        self._build_bottom_section()
        self._load()

    def refresh(self):
        self._load()

    def _build_summary_cards(self):
        self._card_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._card_frame.grid(row=0, column=0, sticky="ew", padx=16, pady=12)
        self._card_frame.grid_columnconfigure((0, 1, 2, 3, 4), weight=1)

    def _build_bottom_section(self):
        bottom = ctk.CTkFrame(self, fg_color="transparent")
        bottom.grid(row=1, column=0, sticky="nsew", padx=16, pady=(0, 12))
        bottom.grid_columnconfigure(0, weight=3)
        bottom.grid_columnconfigure(1, weight=2)
        bottom.grid_rowconfigure(0, weight=1)
        bottom.grid_rowconfigure(1, weight=1)

        # Category breakdown
        self._category_frame = ctk.CTkScrollableFrame(
            bottom, label_text="Spending by Category", height=220
        )
        self._category_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 8), pady=(0, 8))

        # Pie chart
        pie_outer = ctk.CTkFrame(bottom, fg_color=("gray90", "gray20"), corner_radius=8)
        pie_outer.grid(row=0, column=1, sticky="nsew", pady=(0, 8))
        ctk.CTkLabel(
            pie_outer, text="Category Share",
            font=ctk.CTkFont(size=13, weight="bold"),
        ).pack(pady=(10, 0))
        self._pie_fig = Figure(figsize=(3, 3), dpi=80, tight_layout=True)
        self._pie_ax = self._pie_fig.add_subplot(111)
        self._pie_mpl = FigureCanvasTkAgg(self._pie_fig, master=pie_outer)
        self._pie_mpl.get_tk_widget().pack(fill="both", expand=True, padx=8, pady=(4, 10))

        # Per persona
        self._persona_frame = ctk.CTkScrollableFrame(
            bottom, label_text="By Person", height=150
        )
        self._persona_frame.grid(row=1, column=0, sticky="nsew", padx=(0, 8))

        # Most used categories
        self._most_used_frame = ctk.CTkScrollableFrame(
            bottom, label_text="Most Used Categories", height=150
        )
        self._most_used_frame.grid(row=1, column=1, sticky="nsew")

    def _load(self):
        try:
            stats = self._client.get_statistics()
            most_used = self._client.most_used_categories(MOST_USED_DEFAULT)
            balance = self._client.get_current_balance()
        except ServiceError as e:
            self._report_error(f"Could not load statistics: {e.message}", "error")
            return

        for w in self._card_frame.winfo_children():
            w.destroy()
        card_data = [
            ("Total Spent", format_currency(stats.total), "#F44336"),
            ("Expenses", f"{stats.count}  (avg {format_currency(stats.average)})", "#2196F3"),
            ("Ana", format_currency(stats.total_ana), "#9C27B0"),
            ("Valen", format_currency(stats.total_valen), "#00BCD4"),
            (
                "Bank Balance",
                format_currency(balance.amount) if balance else "—",
                "#4CAF50" if balance and balance.amount >= 0 else "#FF9800",
            ),
        ]
        for i, (label, text, color) in enumerate(card_data):
            self._make_card(self._card_frame, i, label, text, color)

        self._fill_categories(stats)
        self.after(50, lambda s=stats: self._draw_pie_chart(s))
        self._fill_personas(stats)
        self._fill_most_used(most_used)

    def _fill_categories(self, stats: ExpenseStatistics):
        for w in self._category_frame.winfo_children():
            w.destroy()
        if not stats.by_category:
            ctk.CTkLabel(
                self._category_frame, text="No expenses yet.", text_color="gray60",
            ).pack(pady=20)
            return
        for c in stats.by_category:
            f = ctk.CTkFrame(self._category_frame, fg_color="transparent")
            f.pack(fill="x", pady=4, padx=4)
            top_row = ctk.CTkFrame(f, fg_color="transparent")
            top_row.pack(fill="x")
            tk.Label(top_row, bg=c.category_color, width=2).pack(side="left", padx=(0, 6))
            ctk.CTkLabel(top_row, text=c.category_name, anchor="w").pack(side="left")
            ctk.CTkLabel(
                top_row,
                text=f"{format_currency(c.total)}  ·  {c.count}  ·  {c.percentage:.1f}%",
                anchor="e", text_color="gray60",
            ).pack(side="right")
            bar = ctk.CTkProgressBar(f, progress_color=c.category_color)
            bar.pack(fill="x", pady=2)
            bar.set(min(c.percentage / 100, 1.0))

    def _fill_personas(self, stats: ExpenseStatistics):
        for w in self._persona_frame.winfo_children():
            w.destroy()
        hdr = ctk.CTkFrame(self._persona_frame, fg_color="transparent")
        hdr.pack(fill="x")
        for col, (text, width) in enumerate(
            [("Person", 70), ("Total", 100), ("Count", 50), ("Average", 90), ("Share", 60),
             ("First", 90), ("Last", 90)]
        ):
            ctk.CTkLabel(
                hdr, text=text, width=width, anchor="w",
                text_color="gray60", font=ctk.CTkFont(size=11),
            ).grid(row=0, column=col, padx=4)
        for idx, p in enumerate(stats.by_persona):
            bg = ("gray90", "gray20") if idx % 2 == 0 else ("gray86", "gray24")
            f = ctk.CTkFrame(self._persona_frame, fg_color=bg, corner_radius=4)
            f.pack(fill="x", pady=1)
            values = [
                (p.persona, 70),
                (format_currency(p.total), 100),
                (str(p.count), 50),
                (format_currency(p.average), 90),
                (f"{p.percentage:.1f}%", 60),
                (format_display_date(p.first_expense, self._date_format) if p.first_expense else "—", 90),
                (format_display_date(p.last_expense, self._date_format) if p.last_expense else "—", 90),
            ]
            for col, (text, width) in enumerate(values):
                ctk.CTkLabel(f, text=text, width=width, anchor="w").grid(
                    row=0, column=col, padx=4, pady=3
                )

    def _fill_most_used(self, most_used):
        for w in self._most_used_frame.winfo_children():
            w.destroy()
        if not most_used:
            ctk.CTkLabel(
                self._most_used_frame, text="Nothing here yet.", text_color="gray60",
            ).pack(pady=20)
            return
        for rank, c in enumerate(most_used, start=1):
            f = ctk.CTkFrame(self._most_used_frame, fg_color="transparent")
            f.pack(fill="x", pady=1)
            ctk.CTkLabel(f, text=f"{rank}.", width=24, anchor="w").pack(side="left")
            tk.Label(f, bg=c.category_color, width=2).pack(side="left", padx=(0, 6))
            ctk.CTkLabel(f, text=c.category_name, anchor="w").pack(side="left")
            ctk.CTkLabel(
                f, text=f"{c.count} × · {format_currency(c.total)}",
                anchor="e", text_color="gray60",
            ).pack(side="right")

    def _style_ax(self, ax, fig):
        is_dark = ctk.get_appearance_mode() == "Dark"
        bg = "#2b2b2b" if is_dark else "#e4e4e4"
        fig.patch.set_facecolor(bg)
        ax.set_facecolor(bg)

    def _draw_pie_chart(self, stats: ExpenseStatistics):
        ax = self._pie_ax
        ax.clear()
        self._style_ax(ax, self._pie_fig)

        slices = [c for c in stats.by_category if c.total > 0]
        if not slices:
            ax.text(0.5, 0.5, "No expense data", ha="center", va="center",
                    transform=ax.transAxes, color="gray")
            self._pie_mpl.draw_idle()
            return

        ax.pie(
            [c.total for c in slices],
            colors=[c.category_color for c in slices],
            startangle=90,
        )
        ax.set_aspect("equal")
        self._pie_mpl.draw_idle()

    def _make_card(self, parent, col, label, text, color):
        card = ctk.CTkFrame(parent, fg_color=("gray90", "gray20"), corner_radius=10)
        card.grid(row=0, column=col, padx=6, sticky="ew")
        card.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(
            card, text=label, font=ctk.CTkFont(size=12),
            text_color="gray60",
        ).grid(row=0, column=0, pady=(12, 0), padx=16)
        ctk.CTkLabel(
            card,
            text=text,
            font=ctk.CTkFont(size=18, weight="bold"),
            text_color=color,
        ).grid(row=1, column=0, pady=(4, 12), padx=16)
