import re
from tkinter import colorchooser

import customtkinter as ctk

from api.client import GastosApiClient
from models.category import Category
from services.errors import ServiceError
from utils.constants import CATEGORY_COLORS
from ui.components.confirm_dialog import center_on_master

_HEX_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class CategoryForm(ctk.CTkToplevel):
    """Add or edit a category."""

    def __init__(
        self,
        master,
        client: GastosApiClient,
        category: Category | None = None,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._client = client
        self._category = category
        self.saved = False

        self.title("Edit Category" if category else "New Category")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        r = 0

        # Name
        ctk.CTkLabel(self, text="Name:").grid(
            row=r, column=0, padx=(16, 8), pady=(16, 4), sticky="e"
        )
        self._name_var = ctk.StringVar(value=category.name if category else "")
        ctk.CTkEntry(self, textvariable=self._name_var, width=240).grid(
            row=r, column=1, padx=(0, 16), pady=(16, 4), sticky="ew"
        )
        r += 1

        # Description
        ctk.CTkLabel(self, text="Description:").grid(
            row=r, column=0, padx=(16, 8), pady=4, sticky="e"
        )
        self._desc_var = ctk.StringVar(value=(category.description or "") if category else "")
        ctk.CTkEntry(self, textvariable=self._desc_var, width=240).grid(
            row=r, column=1, padx=(0, 16), pady=4, sticky="ew"
        )
        r += 1

        # Color
        ctk.CTkLabel(self, text="Color:").grid(
            row=r, column=0, padx=(16, 8), pady=4, sticky="e"
        )
        color_row = ctk.CTkFrame(self, fg_color="transparent")
        color_row.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")

        self._color_var = ctk.StringVar(value=category.color if category else CATEGORY_COLORS[0])
        self._color_entry = ctk.CTkEntry(color_row, textvariable=self._color_var, width=100)
        self._color_entry.pack(side="left")
        self._color_entry.bind("<FocusOut>", self._sync_swatch)

        self._swatch = ctk.CTkLabel(
            color_row, text="", width=32, height=24, corner_radius=4,
            fg_color=self._color_var.get(),
        )
        self._swatch.pack(side="left", padx=(8, 0))

        ctk.CTkButton(
            color_row, text="Pick", width=60,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._pick_color,
        ).pack(side="left", padx=(8, 0))
        r += 1

        # Palette shortcuts
        palette = ctk.CTkFrame(self, fg_color="transparent")
        palette.grid(row=r, column=1, padx=(0, 16), pady=(0, 4), sticky="w")
        for color in CATEGORY_COLORS:
            ctk.CTkButton(
                palette, text="", width=20, height=20, corner_radius=4,
                fg_color=color, hover_color=color,
                command=lambda c=color: self._set_color(c),
            ).pack(side="left", padx=2)
        r += 1

        # Active flag, only meaningful when editing
        self._active_var = ctk.BooleanVar(value=category.active if category else True)
        if category:
            ctk.CTkCheckBox(self, text="Active", variable=self._active_var).grid(
                row=r, column=1, padx=(0, 16), pady=4, sticky="w"
            )
            r += 1

        # Error
        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=320, anchor="w",
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        # Buttons
        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            btn_frame, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        ctk.CTkButton(btn_frame, text="Save", width=90, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        center_on_master(self)

    def _set_color(self, color: str):
        self._color_var.set(color)
        self._swatch.configure(fg_color=color)

    def _pick_color(self):
        result = colorchooser.askcolor(
            color=self._color_var.get(), parent=self, title="Pick Category Color"
        )
        if result and result[1]:
            self._set_color(result[1])

    def _sync_swatch(self, _event=None):
        color = self._color_var.get().strip()
        if _HEX_RE.match(color):
            self._swatch.configure(fg_color=color)

    def _on_save(self):
        name = self._name_var.get().strip()
        description = self._desc_var.get().strip() or None
        color = self._color_var.get().strip()
        if color and not color.startswith("#"):
            color = "#" + color
        try:
            if self._category:
                self._client.update_category(
                    self._category.id, name, color, description, self._active_var.get()
                )
            else:
                self._client.create_category(name, color, description)
            self.saved = True
            self.destroy()
        except ServiceError as e:
            self._error_var.set(e.message)
