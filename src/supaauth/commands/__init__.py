"""Built-in CLI sub-commands for supaauth.

* :mod:`~supaauth.commands.auth` -- ``signup``, ``login``, and ``whoami``.

Each command is a plain callback function attached to the root app by
:func:`supaauth.app.register_commands`.
"""
