"""
Settings page widget for the FocusFlow application.
API key, theme, timer presets, notifications and backup import/export.
"""

from typing import Optional
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QCheckBox, QComboBox,
    QGroupBox, QPushButton, QMessageBox, QLineEdit, QSpinBox,
    QTableWidget, QTableWidgetItem, QHeaderView, QFileDialog, QScrollArea, QFrame
)
from PySide6.QtCore import Qt, Slot, QTimer
from PySide6.QtGui import QFont

from core.controller import AppController
from core.errors import ValidationError
from core.models import AppSettings, Theme
from core.storage import get_app_data_dir


class SettingsPage(QWidget):
    """
    Settings page for configuring application behavior.
    """

    THEME_LABELS = [
        (Theme.LIGHT, "Light"),
        (Theme.DARK, "Dark"),
        (Theme.SYSTEM, "System"),
    ]

    def __init__(self, controller: AppController, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.controller = controller

        self._setup_ui()
        self._connect_signals()
        self._load_settings()
        self.refresh_presets()

    def _setup_ui(self):
        """Set up the UI components."""
        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)
        outer.addWidget(scroll)

        content = QWidget()
        scroll.setWidget(content)
        layout = QVBoxLayout(content)
        layout.setSpacing(20)
        layout.setContentsMargins(30, 30, 30, 30)

        # Header
        header = QLabel("Settings")
        header_font = QFont()
        header_font.setPointSize(18)
        header_font.setBold(True)
        header.setFont(header_font)
        layout.addWidget(header)

        # API key section
        key_box = QGroupBox("Gemini API Key")
        key_layout = QHBoxLayout(key_box)
        self.api_key_edit = QLineEdit()
        self.api_key_edit.setEchoMode(QLineEdit.EchoMode.Password)
        self.api_key_edit.setPlaceholderText("Paste your Gemini API key")
        key_layout.addWidget(self.api_key_edit)
        self.save_key_btn = QPushButton("Save")
        key_layout.addWidget(self.save_key_btn)
        layout.addWidget(key_box)

        # Theme section
        theme_box = QGroupBox("Theme")
        theme_layout = QHBoxLayout(theme_box)
        self.theme_combo = QComboBox()
        for theme, label in self.THEME_LABELS:
            self.theme_combo.addItem(label, theme)
        theme_layout.addWidget(self.theme_combo)
        theme_layout.addStretch()
        layout.addWidget(theme_box)

        # Presets section
        preset_box = QGroupBox("Timer Presets")
        preset_layout = QVBoxLayout(preset_box)

        self.presets_table = QTableWidget()
        self.presets_table.setColumnCount(3)
        self.presets_table.setHorizontalHeaderLabels(["Name", "Study", "Rest"])
        self.presets_table.horizontalHeader().setSectionResizeMode(
            0, QHeaderView.ResizeMode.Stretch
        )
        self.presets_table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.presets_table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.presets_table.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
        self.presets_table.setMinimumHeight(140)
        preset_layout.addWidget(self.presets_table)

        preset_buttons = QHBoxLayout()
        self.use_preset_btn = QPushButton("Use")
        self.use_preset_btn.setEnabled(False)
        preset_buttons.addWidget(self.use_preset_btn)
        self.delete_preset_btn = QPushButton("Delete")
        self.delete_preset_btn.setEnabled(False)
        preset_buttons.addWidget(self.delete_preset_btn)
        preset_buttons.addStretch()
        preset_layout.addLayout(preset_buttons)

        add_layout = QHBoxLayout()
        self.preset_name_edit = QLineEdit()
        self.preset_name_edit.setPlaceholderText("New preset name")
        add_layout.addWidget(self.preset_name_edit)

        self.study_spin = QSpinBox()
        self.study_spin.setRange(1, 240)
        self.study_spin.setValue(45)
        self.study_spin.setSuffix(" min study")
        add_layout.addWidget(self.study_spin)

        self.rest_spin = QSpinBox()
        self.rest_spin.setRange(1, 120)
        self.rest_spin.setValue(15)
        self.rest_spin.setSuffix(" min rest")
        add_layout.addWidget(self.rest_spin)

        self.add_preset_btn = QPushButton("+ Add")
        add_layout.addWidget(self.add_preset_btn)
        preset_layout.addLayout(add_layout)

        layout.addWidget(preset_box)

        # Notifications section
        notif_box = QGroupBox("Notifications")
        notif_layout = QVBoxLayout(notif_box)
        self.sound_check = QCheckBox("Play a sound when a session ends")
        notif_layout.addWidget(self.sound_check)
        self.notification_check = QCheckBox("Show desktop notifications")
        notif_layout.addWidget(self.notification_check)
        layout.addWidget(notif_box)

        # Data Management section
        data_box = QGroupBox("Data Management")
        data_layout = QVBoxLayout(data_box)

        path_label = QLabel(f"Location: {get_app_data_dir()}")
        path_label.setWordWrap(True)
        path_label.setTextInteractionFlags(
            Qt.TextInteractionFlag.TextSelectableByMouse
        )
        data_layout.addWidget(path_label)

        data_buttons = QHBoxLayout()
        self.export_btn = QPushButton("Export data")
        data_buttons.addWidget(self.export_btn)
        self.import_btn = QPushButton("Import data")
        data_buttons.addWidget(self.import_btn)
        data_layout.addLayout(data_buttons)

        layout.addWidget(data_box)
        layout.addStretch()

    def _connect_signals(self):
        """Connect widget signals."""
        self.save_key_btn.clicked.connect(self._on_save_key)
        self.theme_combo.currentIndexChanged.connect(self._on_theme_changed)
        self.presets_table.itemSelectionChanged.connect(self._on_selection_changed)
        self.use_preset_btn.clicked.connect(self._on_use_preset)
        self.delete_preset_btn.clicked.connect(self._on_delete_preset)
        self.add_preset_btn.clicked.connect(self._on_add_preset)
        self.sound_check.toggled.connect(self._on_setting_changed)
        self.notification_check.toggled.connect(self._on_setting_changed)
        self.export_btn.clicked.connect(self._on_export)
        self.import_btn.clicked.connect(self._on_import)
        self.controller.presets_changed.connect(self.refresh_presets)

    def _load_settings(self):
        """Load settings from the controller."""
        settings = self.controller.settings
        widgets = [self.theme_combo, self.sound_check, self.notification_check]

        # Block signals while loading to prevent save loops
        for widget in widgets:
            widget.blockSignals(True)

        index = self.theme_combo.findData(self.controller.theme)
        self.theme_combo.setCurrentIndex(max(0, index))
        self.sound_check.setChecked(settings.sound_enabled)
        self.notification_check.setChecked(settings.notification_enabled)

        for widget in widgets:
            widget.blockSignals(False)

        if self.controller.has_api_key():
            self.api_key_edit.setPlaceholderText("API key saved")

    @Slot()
    def refresh_presets(self):
        """Refresh the presets table."""
        presets = self.controller.presets
        active_id = self.controller.active_preset_id
        self.presets_table.setRowCount(len(presets))

        for row, preset in enumerate(presets):
            name = preset.name + ("  (active)" if preset.id == active_id else "")
            name_item = QTableWidgetItem(name)
            name_item.setData(Qt.ItemDataRole.UserRole, preset.id)
            if preset.id == active_id:
                font = name_item.font()
                font.setBold(True)
                name_item.setFont(font)
            self.presets_table.setItem(row, 0, name_item)

            study_item = QTableWidgetItem(f"{preset.study} min")
            study_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self.presets_table.setItem(row, 1, study_item)

            rest_item = QTableWidgetItem(f"{preset.rest} min")
            rest_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self.presets_table.setItem(row, 2, rest_item)

        self._on_selection_changed()

    def _selected_preset_id(self) -> Optional[str]:
        selected = self.presets_table.selectedItems()
        if not selected:
            return None
        item = self.presets_table.item(selected[0].row(), 0)
        return item.data(Qt.ItemDataRole.UserRole)

    @Slot()
    def _on_selection_changed(self):
        has_selection = self._selected_preset_id() is not None
        self.use_preset_btn.setEnabled(has_selection)
        self.delete_preset_btn.setEnabled(has_selection)

    @Slot()
    def _on_use_preset(self):
        preset_id = self._selected_preset_id()
        if preset_id is not None:
            self.controller.set_active_preset(preset_id)

    @Slot()
    def _on_delete_preset(self):
        preset_id = self._selected_preset_id()
        if preset_id is not None:
            self.controller.delete_preset(preset_id)

    @Slot()
    def _on_add_preset(self):
        try:
            self.controller.add_preset(
                self.preset_name_edit.text(),
                self.study_spin.value(),
                self.rest_spin.value(),
            )
        except ValidationError as e:
            QMessageBox.warning(self, "Validation Error", str(e))
            return
        self.preset_name_edit.clear()

    @Slot()
    def _on_save_key(self):
        key = self.api_key_edit.text().strip()
        if not key:
            QMessageBox.warning(self, "Validation Error", "Please enter an API key.")
            return
        self.controller.save_api_key(key)
        self.api_key_edit.clear()
        self.api_key_edit.setPlaceholderText("API key saved")
        self.save_key_btn.setText("Saved!")
        QTimer.singleShot(2000, lambda: self.save_key_btn.setText("Save"))

    @Slot(int)
    def _on_theme_changed(self, index: int):
        theme = self.theme_combo.itemData(index)
        if theme is not None:
            self.controller.set_theme(theme)

    @Slot()
    def _on_setting_changed(self):
        """Handle settings change."""
        self.controller.update_settings(AppSettings(
            sound_enabled=self.sound_check.isChecked(),
            notification_enabled=self.notification_check.isChecked(),
        ))

    @Slot()
    def _on_export(self):
        filepath, _ = QFileDialog.getSaveFileName(
            self,
            "Export data",
            self.controller.default_export_filename(),
            "JSON files (*.json)"
        )
        if not filepath:
            return
        try:
            self.controller.export_data(filepath)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Failed to export data:\n{e}")

    @Slot()
    def _on_import(self):
        filepath, _ = QFileDialog.getOpenFileName(
            self, "Import data", "", "JSON files (*.json)"
        )
        if not filepath:
            return
        try:
            self.controller.import_data(filepath)
        except ValidationError as e:
            QMessageBox.warning(self, "Import failed", str(e))
            return
        QMessageBox.information(self, "Import", "Data imported successfully!")
