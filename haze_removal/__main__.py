from .dehaze import main

raise SystemExit(main())
