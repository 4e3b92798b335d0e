"""Entity store core: transaction log, point-in-time reads, history, uniqueness, encryption and where-clause queries."""

__version__ = "0.1.0"