"""gpsync: commands subpackage
---------------------------------------------------------
Implementation of the commands exposed by the ``gpsync`` tool, organized with
Typer. Each command translates its arguments into calls on the library and
reports failures through the shared logger with a non-zero exit code.

Public API
----------
``plot`` : Plot columns of a text data file (``gpsync plot``)
``config`` : Inspect the effective configuration (``gpsync config show``,
``gpsync features``)
"""
