"""Church administration back end: ministries, leadership and the event approval workflow."""

__version__ = "0.1.0"
