"""questdo - gamified task manager with projects, rewards and progression."""

__version__ = "0.1.0"
