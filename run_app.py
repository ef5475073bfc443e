# run_app.py
import streamlit.web.cli as stcli
import os, sys


def resolve_path(path):
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), path)


def main():
    # Headless: the browser is opened by the user, not by the server
    os.environ.setdefault("STREAMLIT_SERVER_HEADLESS", "true")

    sys.argv = [
        "streamlit",
        "run",
        resolve_path("app.py"),
        "--global.developmentMode=false",
    ] + sys.argv[1:]

    return stcli.main()


if __name__ == "__main__":
    sys.exit(main())
