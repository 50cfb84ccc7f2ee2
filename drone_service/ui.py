"""
Design (ui.py)
- Purpose: Build and manage the Tkinter UI (intake form, queue Treeviews, dialogs, logs).
- Inputs: ServiceLifecycleEngine (all state lives there).
- Outputs: None (renders UI, calls engine commands).
- Side effects: Creates windows; shows desktop notifications when a job is processed.
- Thread-safety: UI code runs on main thread; engine events are re-posted with Tk.after().
"""

import logging
import tkinter as tk
from datetime import datetime
from tkinter import messagebox, ttk
from typing import Dict, Optional

from plyer import notification

from .config import LOG_MAX_LINES, NOTIFY_TIMEOUT_SEC, WINDOW_TITLE
from .engine import EventKind, ServiceEvent, ServiceLifecycleEngine
from .errors import ServiceError, ValidationError
from .models import Priority, ServiceRecord
from .utils import is_cost_keystroke_allowed

logger = logging.getLogger(__name__)

BG = "#1e1e1e"
FIELD_BG = "#2b2b2b"


class AppUI:
    """
    Design (AppUI)
    - Purpose: Thin shell over the engine; keeps only view state (selection, edit target).
    - Public attributes:
        enable_notifications (tk.BooleanVar): toggles desktop notifications on processing
        show_logs (tk.BooleanVar): toggles visibility of the logs panel (engine events)
    - Public methods:
        schedule_refresh(): repaint the three lists from engine snapshots on the main thread
    """

    def __init__(self, root: tk.Tk, engine: ServiceLifecycleEngine):
        self.root = root
        self.engine = engine

        self.enable_notifications = tk.BooleanVar(value=True)
        self.show_logs = tk.BooleanVar(value=False)
        self.status_text = tk.StringVar(value="Ready.")
        self.v_priority = tk.StringVar(value=Priority.REGULAR.value)
        self.v_tag = tk.StringVar()

        # Record being edited (None = intake mode)
        self._editing: Optional[ServiceRecord] = None
        # Treeview iid -> record, rebuilt on every repaint
        self._rows: Dict[str, Dict[str, ServiceRecord]] = {"regular": {}, "express": {}, "finished": {}}

        # Window
        self.root.title(WINDOW_TITLE)
        self.root.rowconfigure(1, weight=1)
        self.root.columnconfigure(0, weight=1)
        self.root.configure(bg=BG)

        style = ttk.Style(self.root)
        style.theme_use("default")
        style.configure(
            "Treeview",
            background=FIELD_BG,
            foreground="#f0f0f0",
            fieldbackground=FIELD_BG,
            rowheight=24,
            font=("Segoe UI", 10),
        )
        style.configure(
            "Treeview.Heading",
            background=BG,
            foreground="#ffffff",
            font=("Segoe UI", 10, "bold"),
        )
        style.map("Treeview", background=[('selected', '#444')], foreground=[])

        self._build_form()
        self._build_lists()
        self._build_buttons()

        tk.Label(self.root, textvariable=self.status_text, anchor="w", fg="#dddddd", bg="#141414").grid(
            row=4, column=0, sticky="ew"
        )

        self.engine.subscribe(self._on_engine_event)

        # Initial paint
        self.refresh_ui()

    # ---------- layout ----------

    def _build_form(self) -> None:
        form = tk.Frame(self.root, bg=BG)
        form.grid(row=0, column=0, sticky="ew", padx=10, pady=(10, 5))

        def label(text, row, col=0):
            tk.Label(form, text=text, fg="white", bg=BG).grid(row=row, column=col, sticky="e", padx=5, pady=3)

        label("Client Name", 0)
        self.e_client = tk.Entry(form, width=30)
        self.e_client.grid(row=0, column=1, padx=5, pady=3)

        label("Drone Model", 1)
        self.e_model = tk.Entry(form, width=30)
        self.e_model.grid(row=1, column=1, padx=5, pady=3)

        label("Service Problem", 2)
        self.e_problem = tk.Entry(form, width=30)
        self.e_problem.grid(row=2, column=1, padx=5, pady=3)

        label("Cost ($)", 0, 2)
        vcmd = (self.root.register(is_cost_keystroke_allowed), "%P")
        self.e_cost = tk.Entry(form, width=12, validate="key", validatecommand=vcmd)
        self.e_cost.grid(row=0, column=3, sticky="w", padx=5, pady=3)

        label("Service Tag", 1, 2)
        self.e_tag = tk.Entry(form, width=12, textvariable=self.v_tag, state="disabled")
        self.e_tag.grid(row=1, column=3, sticky="w", padx=5, pady=3)

        label("Priority", 2, 2)
        radios = tk.Frame(form, bg=BG)
        radios.grid(row=2, column=3, sticky="w")
        for prio in Priority:
            tk.Radiobutton(
                radios,
                text=prio.value,
                value=prio.value,
                variable=self.v_priority,
                fg="white",
                bg=BG,
                selectcolor=FIELD_BG,
                activebackground=BG,
                activeforeground="white",
            ).pack(side=tk.LEFT, padx=3)

        self.btn_submit = ttk.Button(form, text="Add New Item", command=self.submit)
        self.btn_submit.grid(row=0, column=4, padx=10, pady=3, sticky="ew")
        ttk.Button(form, text="Clear", command=self.clear_form).grid(row=1, column=4, padx=10, pady=3, sticky="ew")

    def _build_lists(self) -> None:
        lists = tk.Frame(self.root, bg=BG)
        lists.grid(row=1, column=0, sticky="nsew", padx=10, pady=5)
        lists.rowconfigure(1, weight=1)

        columns = ("tag", "client", "model", "problem", "cost")
        headers = {"tag": "Tag", "client": "Client", "model": "Model", "problem": "Problem", "cost": "Cost"}
        self.trees: Dict[str, ttk.Treeview] = {}
        for col, (key, title) in enumerate((("regular", "Regular Service"),
                                            ("express", "Express Service"),
                                            ("finished", "Finished"))):
            lists.columnconfigure(col, weight=1)
            tk.Label(lists, text=title, fg="white", bg=BG, font=("Segoe UI", 10, "bold")).grid(
                row=0, column=col, sticky="w", padx=5
            )
            tree = ttk.Treeview(lists, columns=columns, show="headings", selectmode="browse", height=12)
            for c in columns:
                tree.heading(c, text=headers[c])
                tree.column(c, width=60 if c in ("tag", "cost") else 110, stretch=c not in ("tag", "cost"))
            tree.grid(row=1, column=col, sticky="nsew", padx=5)
            self.trees[key] = tree

        for key, prio in (("regular", Priority.REGULAR), ("express", Priority.EXPRESS)):
            self.trees[key].bind("<<TreeviewSelect>>", lambda _e, k=key, p=prio: self.on_select(k, p))
            self.trees[key].bind("<Double-1>", lambda _e, k=key: self.on_queue_double_click(k))
        self.trees["finished"].bind("<Double-1>", lambda _e: self.on_finished_double_click())

    def _build_buttons(self) -> None:
        button_frame = tk.Frame(self.root, bg=BG)
        button_frame.grid(row=2, column=0, sticky="ew", padx=10, pady=(0, 5))

        ttk.Button(button_frame, text="Process Regular",
                   command=lambda: self.process("regular", Priority.REGULAR)).pack(side=tk.LEFT, padx=5)
        ttk.Button(button_frame, text="Process Express",
                   command=lambda: self.process("express", Priority.EXPRESS)).pack(side=tk.LEFT, padx=5)

        tk.Checkbutton(
            button_frame,
            text="Enable Notifications",
            variable=self.enable_notifications,
            fg="white",
            bg=BG,
            selectcolor=FIELD_BG,
            activebackground=BG,
            activeforeground="white",
        ).pack(side=tk.LEFT, padx=5)

        tk.Checkbutton(
            button_frame,
            text="Show Logs",
            variable=self.show_logs,
            fg="white",
            bg=BG,
            selectcolor=FIELD_BG,
            command=self.toggle_logs,
        ).pack(side=tk.LEFT, padx=5)

        self.logs_box = tk.Text(self.root, height=6, bg="#1b1b1b", fg="#dddddd", wrap="none")
        self.logs_box.configure(state="disabled")
        self.logs_box.grid(row=3, column=0, sticky="ew", padx=10, pady=(0, 6))
        self.logs_box.grid_remove()  # hidden by default

    # ---------- refresh ----------

    def schedule_refresh(self) -> None:
        """
        Purpose: Request a repaint without assuming the caller is on the main thread.
        Side effects: Schedules refresh_ui via Tk.after().
        """
        self.root.after(0, self.refresh_ui)

    def refresh_ui(self) -> None:
        """
        Purpose: Rebuild the three lists from engine snapshots and show the next tag.
        Thread-safety: Main thread only (use schedule_refresh from elsewhere).
        """
        data = {
            "regular": self.engine.snapshot(Priority.REGULAR),
            "express": self.engine.snapshot(Priority.EXPRESS),
            "finished": self.engine.finished_snapshot(),
        }
        for key, records in data.items():
            tree = self.trees[key]
            selected = tree.selection()
            tree.delete(*tree.get_children())
            self._rows[key] = {}
            for record in records:
                iid = str(record.service_tag)
                self._rows[key][iid] = record
                tree.insert("", "end", iid=iid, values=(
                    record.service_tag,
                    record.display_client_name,
                    record.drone_model,
                    record.display_problem,
                    f"${record.service_cost}",
                ))
            keep = [iid for iid in selected if iid in self._rows[key]]
            if keep:
                tree.selection_set(keep)

        if self._editing is None:
            try:
                self.v_tag.set(str(self.engine.next_tag()))
            except ServiceError as exc:
                self.v_tag.set("—")
                self.status_text.set(str(exc))

    def toggle_logs(self) -> None:
        if self.show_logs.get():
            self.logs_box.grid()
        else:
            self.logs_box.grid_remove()

    # ---------- form ----------

    def clear_form(self) -> None:
        for entry in (self.e_client, self.e_model, self.e_problem, self.e_cost):
            entry.delete(0, tk.END)
        self.v_priority.set(Priority.REGULAR.value)
        self._editing = None
        self.btn_submit.configure(text="Add New Item")
        self.refresh_ui()

    def submit(self) -> None:
        """
        Purpose: Add a new job, or save the job loaded for editing.
        Side effects: Calls engine.create_record / engine.edit_record; updates status bar.
        """
        fields = (
            self.e_client.get(),
            self.e_model.get(),
            self.e_problem.get(),
            self.e_cost.get(),
            self.v_priority.get(),
        )
        try:
            if self._editing is None:
                record = self.engine.create_record(*fields)
                message = f"Added {record.service_priority.value} Tag {record.service_tag}"
            else:
                record = self.engine.edit_record(self._editing, *fields)
                message = f"Updated Tag {record.service_tag}"
        except ValidationError as exc:
            self.status_text.set(exc.reason)
            return
        except ServiceError as exc:
            messagebox.showerror(WINDOW_TITLE, str(exc))
            return
        self.clear_form()
        self.status_text.set(message)

    def _load_for_edit(self, record: ServiceRecord) -> None:
        try:
            form = self.engine.load_for_edit(record)
        except ServiceError as exc:
            self.status_text.set(str(exc))
            return
        self.clear_form()
        self._editing = record
        self.btn_submit.configure(text="Save Changes")
        self.v_tag.set(str(form.service_tag))
        self.e_client.insert(0, form.client_name)
        self.e_model.insert(0, form.drone_model)
        self.e_problem.insert(0, form.service_problem)
        self.e_cost.insert(0, str(form.cost))
        self.v_priority.set(form.priority.value)
        self.status_text.set(f"Editing Tag {form.service_tag}")

    # ---------- list callbacks ----------

    def _selected(self, key: str) -> Optional[ServiceRecord]:
        selected = self.trees[key].selection()
        if not selected:
            return None
        return self._rows[key].get(selected[0])

    def on_select(self, key: str, priority: Priority) -> None:
        self.engine.select(priority, self._selected(key))

    def on_queue_double_click(self, key: str) -> None:
        record = self._selected(key)
        if record is not None:
            self._load_for_edit(record)

    def on_finished_double_click(self) -> None:
        """
        Purpose: Ask before deleting the selected finished job.
        Side effects: engine.remove_finished with the user's answer.
        """
        record = self._selected("finished")
        if record is None:
            return
        confirmed = messagebox.askyesno(
            "Confirm Delete", f"Are you sure you want to remove Tag {record.service_tag}?"
        )
        try:
            if self.engine.remove_finished(record, confirmed=confirmed):
                self.status_text.set(f"Removed finished Tag {record.service_tag}")
        except ServiceError as exc:
            self.status_text.set(str(exc))

    def process(self, key: str, priority: Priority) -> None:
        """
        Purpose: Process the selected job (or the head of the queue when nothing is selected).
                 The first click arms the queue, the second one finishes the job.
        """
        try:
            outcome = self.engine.process_next(priority, self._selected(key))
        except ServiceError as exc:
            self.status_text.set(str(exc))
            return
        tag = outcome.record.service_tag
        if not outcome.confirmed:
            self.status_text.set(f"Click again to confirm Tag {tag}")
            return
        self.status_text.set(f"Processed {priority.value} Tag {tag}")

    # ---------- engine events ----------

    def _on_engine_event(self, event: ServiceEvent) -> None:
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{stamp}] {event.kind.value} {event.record.display()}\n"
        self.root.after(0, lambda: self._append_log(line))
        if event.kind is EventKind.PROCESSED and self.enable_notifications.get():
            self._notify(event.record)
        self.schedule_refresh()

    def _notify(self, record: ServiceRecord) -> None:
        try:
            notification.notify(
                title="Service Processed",
                message=f"{record.service_priority.value} Tag {record.service_tag} is finished",
                timeout=NOTIFY_TIMEOUT_SEC,
            )
        except (NotImplementedError, OSError):
            logger.warning("Desktop notifications are unavailable on this system")

    def _append_log(self, text: str) -> None:
        """
        Purpose: Append one line to the Logs panel and trim to LOG_MAX_LINES.
        Thread-safety: Main thread only (called via after()).
        """
        self.logs_box.configure(state="normal")
        self.logs_box.insert("end", text)
        self.logs_box.see("end")
        total_lines = int(self.logs_box.index("end-1c").split(".")[0])
        if total_lines > LOG_MAX_LINES:
            remove = total_lines - LOG_MAX_LINES
            self.logs_box.delete("1.0", f"{remove + 1}.0")
        self.logs_box.configure(state="disabled")
