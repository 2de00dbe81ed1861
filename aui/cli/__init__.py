"""
命令行模块 - 基于 Typer 的 aui CLI。

命令入口定义在 commands.py 中，通过 `aui` 或 `python -m aui` 调用。
"""
