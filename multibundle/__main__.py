"""Run the multibundle command line tool with `python -m multibundle`."""

from multibundle.tool.multibundle import main

if __name__ == "__main__":
    main()
