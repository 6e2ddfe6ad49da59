"""FinContas personal-finance backend.

Service modules (``accounts``, ``transactions``, ``planning``, ``bank_sync``
and friends) take an open SQLAlchemy session and the authenticated user id;
the HTTP layer lives in :mod:`fincontas.web` and the console entrypoint in
:mod:`fincontas.cli`.
"""
