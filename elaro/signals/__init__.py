"""
Behavioural signals derived from caregiver action history.

Modules
-------
engine : pure ``compute_*`` functions over instance lists, the
         ``SignalsEngine`` that feeds them from a ``HistoryRepository``,
         and the ``SignalSnapshot`` bundle used by the ``signals`` command.
"""
