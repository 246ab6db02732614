"""Allow ``python -m testsnake``."""

from testsnake.main import main

raise SystemExit(main())
