from structured_editor.cli import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
