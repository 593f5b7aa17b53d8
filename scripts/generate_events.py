"""
Event Stream Generator: writes a realistic synthetic recording for replay.

Run: python scripts/generate_events.py [num_clicks] [out.jsonl]
     python main.py replay out.jsonl
"""

import json
import random
import sys
import time
from pathlib import Path

TARGETS = [
    ("BUTTON", "submit", "Submit", 96, 36),
    ("BUTTON", "next", "Next", 80, 32),
    ("A", "", "Settings", 64, 18),
    ("INPUT", "email", "", 240, 32),
    ("SELECT", "country", "Country", 180, 32),
    ("DIV", "cookie-accept", "Accept all cookies", 140, 40),
    ("SPAN", "", "Help", 36, 16),
]

CEREMONIAL_REASONS = ["consent/cookie banner", "confirmation dialog", "dismissed tooltip"]
WASTED_REASONS = ["disabled element", "no visible response", "rage click"]


def generate(num_clicks: int = 25, seed: int = None) -> list:
    rng = random.Random(seed)
    now = time.time() * 1000
    x, y = 400.0, 300.0
    scroll_total = page = container = 0.0
    scroll_events = 0
    travel_total = idle_travel = 0.0
    move_events = 0
    switches = shortcuts = 0
    free_text, constrained = 0, 0
    fields = []
    events = []

    for _ in range(num_clicks):
        # Mostly quick actions, sometimes a long think
        now += rng.uniform(400, 2500) if rng.random() > 0.15 else rng.uniform(3500, 9000)

        # ── Cursor travel before the click ──────────────────────────────
        nx, ny = rng.uniform(20, 1260), rng.uniform(20, 780)
        straight = ((nx - x) ** 2 + (ny - y) ** 2) ** 0.5
        travel_total += straight * rng.uniform(1.1, 1.8)
        idle_travel += rng.uniform(0, 60)
        move_events += rng.randint(5, 40)
        events.append({
            "type": "mouse_travel_update",
            "timestamp": round(now - 50),
            "total_px": round(travel_total),
            "idle_travel_px": round(idle_travel),
            "move_events": move_events,
        })
        x, y = nx, ny

        # ── Click ───────────────────────────────────────────────────────
        tag, el_id, text, w, h = rng.choice(TARGETS)
        roll = rng.random()
        click = {
            "type": "click",
            "timestamp": round(now),
            "x": round(x),
            "y": round(y),
            "target": {"tagName": tag, "id": el_id, "innerText": text,
                       "rect": {"width": w, "height": h}},
        }
        if roll < 0.1:
            click["classification"] = "wasted"
            click["classificationReason"] = rng.choice(WASTED_REASONS)
        elif roll < 0.25:
            click["classification"] = "ceremonial"
            click["classificationReason"] = rng.choice(CEREMONIAL_REASONS)
        else:
            click["classification"] = "productive"
        events.append(click)

        # ── Occasional scroll ───────────────────────────────────────────
        if rng.random() < 0.3:
            now += rng.uniform(200, 800)
            delta = rng.uniform(100, 900)
            scroll_total += delta
            if rng.random() < 0.7:
                page += delta
            else:
                container += delta
            scroll_events += rng.randint(3, 15)
            events.append({
                "type": "scroll_update",
                "timestamp": round(now),
                "total_px": round(scroll_total),
                "page_scroll_px": round(page),
                "container_scroll_px": round(container),
                "total_horizontal_px": 0,
                "scroll_events": scroll_events,
                "heaviest_container": "div.results" if container else None,
            })

        # ── Typing into a field ─────────────────────────────────────────
        if tag in ("INPUT", "SELECT"):
            now += rng.uniform(800, 3000)
            switches += 2
            shortcuts += 1 if rng.random() < 0.2 else 0
            if tag == "INPUT":
                free_text += 1
                label = text or el_id
                if label not in fields:
                    fields.append(label)
            else:
                constrained += 1
            total_inputs = free_text + constrained
            events.append({
                "type": "keyboard_update",
                "timestamp": round(now),
                "context_switches": {
                    "total": switches,
                    "ratio": round(switches / max(len(events), 1), 2),
                    "longest_keyboard_streak": rng.randint(3, 30),
                    "longest_mouse_streak": rng.randint(2, 12),
                },
                "shortcut_coverage": {"shortcuts_used": shortcuts},
                "typing_ratio": {
                    "free_text_inputs": free_text,
                    "constrained_inputs": constrained,
                    "ratio": round(free_text / total_inputs, 2),
                    "free_text_fields": list(fields),
                },
            })

    return events


def write(events: list, path: Path) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        for event in events:
            fh.write(json.dumps(event) + "\n")


if __name__ == "__main__":
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 25
    out = Path(sys.argv[2]) if len(sys.argv) > 2 else Path("events.jsonl")
    events = generate(count)
    write(events, out)
    print(f"Wrote {len(events)} events ({count} clicks) to {out}.")
