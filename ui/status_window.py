# -*- coding: utf-8 -*-

import queue
import tkinter as tk
from tkinter import ttk
from typing import Optional

from core.timer_engine import EngineSnapshot
from domain.models import IconKind, TimerState

ICON_STYLE = {
    IconKind.IDLE: ("Idle", "#6B7280"),
    IconKind.WORK: ("Deep Work", "#EF4444"),
    IconKind.SHORT_REST: ("Short Rest", "#10B981"),
    IconKind.LONG_REST: ("Long Rest", "#3B82F6"),
}


class StatusWindow:
    """
    Small always-on-top status window acting as the display and icon sinks.

    The engine calls set_remaining_time / set_icon from ticker threads, so
    every update is queued and applied on the Tk loop by _drain().

    Control-Shift-space toggles the timer, but only while this window has
    keyboard focus; it is not registered as a system-wide hotkey.
    """

    POLL_MS = 100

    def __init__(self, root: Optional[tk.Tk] = None):
        self.root = root or tk.Tk()
        self.root.title("Tomato Timer")
        self.root.geometry("260x180")
        self.root.attributes("-topmost", True)

        self.service = None
        self._queue: "queue.Queue" = queue.Queue()

        self._build_ui()
        self.root.bind("<Control-Shift-space>", lambda e: self._start_stop())
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)
        self.root.after(self.POLL_MS, self._drain)

    def bind_service(self, service) -> None:
        self.service = service
        service.set_on_state_change(self._on_state_change)
        self.show_timer_var.set(bool(service.get_setting("show_timer_in_menu_bar")))
        self._render_state(service.get_snapshot())

    # ----- sink API (any thread) -----
    def set_remaining_time(self, text: Optional[str]) -> None:
        self._queue.put(("time", text))

    def set_icon(self, kind: IconKind) -> None:
        self._queue.put(("icon", kind))

    def _on_state_change(self, snap: EngineSnapshot) -> None:
        self._queue.put(("state", snap))

    # ----- UI -----
    def _build_ui(self):
        frame = ttk.Frame(self.root, padding=10)
        frame.pack(expand=True, fill="both")
        frame.columnconfigure(0, weight=1)

        self.icon_var = tk.StringVar(value="Idle")
        self.time_var = tk.StringVar(value="")

        self.icon_label = tk.Label(
            frame, textvariable=self.icon_var, fg="#6B7280", font=("Sans", 10, "bold")
        )
        self.icon_label.grid(row=0, column=0, sticky="w")

        self.time_label = ttk.Label(
            frame, textvariable=self.time_var, font=("Sans", 28, "bold")
        )
        self.time_label.grid(row=1, column=0, sticky="w", pady=(4, 8))

        btns = ttk.Frame(frame)
        btns.grid(row=2, column=0, sticky="w")

        self.start_btn = ttk.Button(btns, text="Start", command=self._start_stop)
        self.break_btn = ttk.Button(btns, text="Start break", command=self._start_break)
        self.skip_btn = ttk.Button(btns, text="Skip rest", command=self._skip_rest)

        self.start_btn.grid(row=0, column=0, padx=(0, 6))
        self.break_btn.grid(row=0, column=1, padx=(0, 6))
        self.skip_btn.grid(row=0, column=2)

        self.show_timer_var = tk.BooleanVar(value=True)
        ttk.Checkbutton(
            frame,
            text="Show timer",
            variable=self.show_timer_var,
            command=self._toggle_show_timer,
        ).grid(row=3, column=0, sticky="w", pady=(8, 0))

    def _drain(self):
        try:
            while True:
                kind, payload = self._queue.get_nowait()
                if kind == "time":
                    self.time_var.set(payload or "")
                elif kind == "icon":
                    label, color = ICON_STYLE[payload]
                    self.icon_var.set(label)
                    self.icon_label.config(fg=color)
                elif kind == "state":
                    self._render_state(payload)
        except queue.Empty:
            pass
        self.root.after(self.POLL_MS, self._drain)

    def _render_state(self, snap: EngineSnapshot):
        self.start_btn.config(text="Start" if snap.state == TimerState.IDLE else "Stop")

        if snap.state == TimerState.IDLE and snap.pending_break:
            self.break_btn.state(["!disabled"])
        else:
            self.break_btn.state(["disabled"])

        if snap.state == TimerState.REST:
            self.skip_btn.state(["!disabled"])
        else:
            self.skip_btn.state(["disabled"])

    # ----- actions -----
    def _start_stop(self):
        if self.service:
            self.service.start_stop()

    def _start_break(self):
        if self.service:
            self.service.start_break()

    def _skip_rest(self):
        if self.service:
            self.service.skip_rest()

    def _toggle_show_timer(self):
        if self.service:
            self.service.set_setting("show_timer_in_menu_bar", self.show_timer_var.get())

    def _on_close(self):
        if self.service:
            self.service.shutdown()
        self.root.destroy()

    def run(self):
        self.root.mainloop()
