"""Built-in CLI sub-commands for clientgen.

* :mod:`~clientgen.commands.generate` -- write the artifact manifest.
* :mod:`~clientgen.commands.inspect` -- print the tree, types or operations.
* :mod:`~clientgen.commands.report` -- typed vs untyped summary.
* :mod:`~clientgen.commands.call` -- invoke one operation through the
  runtime client.

Each module exports either a :class:`typer.Typer` sub-application (for the
``inspect`` group) or a plain callback registered on the root app.
"""
