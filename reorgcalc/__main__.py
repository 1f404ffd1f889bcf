from reorgcalc.cli import main

raise SystemExit(main())
