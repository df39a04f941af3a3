"""Allow ``python -m infrakit_aliyun`` as a shortcut for the CLI."""

from infrakit_aliyun.cli.main import main


if __name__ == "__main__":
    main()
