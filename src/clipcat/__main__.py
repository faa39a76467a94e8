from clipcat.cli import main

raise SystemExit(main())
