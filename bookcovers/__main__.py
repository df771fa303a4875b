from bookcovers.cli import main

raise SystemExit(main())
