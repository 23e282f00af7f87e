from npm_root_repair.application.app import main

if __name__ == "__main__":
    raise SystemExit(main())
