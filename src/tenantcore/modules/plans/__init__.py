"""Plans module - the subscription plan catalogue."""

# Module metadata
__module_info__ = {
    "name": "plans",
    "version": "1.0.0",
    "description": "Subscription plan catalogue",
    "dependencies": [],
}
