from planboard.blueprints.notifications import bp as notifications_bp
from planboard.blueprints.reminders import bp as reminders_bp
from planboard.blueprints.dependencies import bp as dependencies_bp
from planboard.blueprints.health import bp as health_bp

__all__ = ["notifications_bp", "reminders_bp", "dependencies_bp", "health_bp"]
