from pyrcs.cli import cli


def main():
    """主入口函数"""
    cli(prog_name="pyrcs")


if __name__ == "__main__":
    main()
