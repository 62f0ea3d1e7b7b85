"""
kudos.__main__ — Entry point for ``python -m kudos``
====================================================

Builds the core services and reports readiness.  Chat transports import
:func:`kudos.bootstrap.build_services` directly.
"""

from kudos.bootstrap import main

if __name__ == "__main__":
    main()
