"""decadog: sprint planning across GitHub and ZenHub."""

__version__ = "0.4.0"
