"""Chat internals -- the pieces behind the ``shelly`` command.

Module Overview
---------------

**transport.py**
    ``CompletionClient``: buffered and streaming POSTs to the OpenRouter
    chat-completions endpoint. Raises ``AuthError`` / ``ApiError``.

**stream_decoder.py**
    Incremental ``data:`` frame decoder. Buffers partial frames across
    chunk boundaries and forwards content deltas in arrival order.

**prompt_assembler.py**
    The fixed system directive and request message assembly.

**history_store.py**
    JSON history file: load once, truncate and overwrite on every save.

**command_runner.py**
    Command suggestion extraction, confirmation and shell execution.

**file_context.py**
    Loading local files as conversation context.

**display.py**
    rich-based terminal output.

**session.py**
    ``ChatSession``: the directive dispatcher and turn loop, operating on
    an explicit ``SessionContext``.

Modules only depend on external packages, ``shelly_constants`` and each
other in that order; ``session.py`` is the only one that reaches into
``shelly_cli`` (config persistence and the known-model list).
"""
