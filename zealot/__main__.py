"""Run the zealot command line tool with `python -m zealot`."""

from zealot.tool.zealot import main


if __name__ == "__main__":
    main()
