icon = {
    "running": "🏃",
    "check": "✅",
    "cross": "❌",
    "warning": "⚠️",
    "bug": "🐞",
    "ticket": "🎫",
    "report": "📊",
}
