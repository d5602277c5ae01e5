"""Billing module - payment gateway and tenant notifications."""

# Module metadata
__module_info__ = {
    "name": "billing",
    "version": "1.0.0",
    "description": "Payment gateway and tenant notifications",
    "dependencies": [],
}
