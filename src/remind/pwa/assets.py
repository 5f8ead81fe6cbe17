"""Web app manifest and the offline fallback page."""

from __future__ import annotations

from typing import Any

APP_NAME = "RE:MIND"
THEME_COLOR = "#4f46e5"
BACKGROUND_COLOR = "#0f172a"


def web_manifest() -> dict[str, Any]:
    return {
        "name": APP_NAME,
        "short_name": APP_NAME,
        "description": "Reminders that understand how you talk",
        "start_url": "/dashboard",
        "scope": "/",
        "display": "standalone",
        "orientation": "portrait",
        "background_color": BACKGROUND_COLOR,
        "theme_color": THEME_COLOR,
        "icons": [
            {"src": "/icons/icon-192x192.png", "sizes": "192x192", "type": "image/png"},
            {"src": "/icons/icon-512x512.png", "sizes": "512x512", "type": "image/png", "purpose": "any maskable"},
        ],
    }


OFFLINE_HTML = f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta name="theme-color" content="{THEME_COLOR}">
  <title>{APP_NAME} - Offline</title>
  <style>
    body {{ margin: 0; min-height: 100vh; display: flex; align-items: center; justify-content: center;
           font-family: system-ui, sans-serif; background: {BACKGROUND_COLOR}; color: #e2e8f0; }}
    main {{ text-align: center; padding: 2rem; }}
    button {{ margin-top: 1rem; padding: .6rem 1.4rem; border: 0; border-radius: .5rem;
             background: {THEME_COLOR}; color: #fff; font-size: 1rem; }}
  </style>
</head>
<body>
  <main>
    <h1>You're offline</h1>
    <p>Reminders you add now are saved on this device and synced when you reconnect.</p>
    <button onclick="location.reload()">Try again</button>
  </main>
</body>
</html>
"""
