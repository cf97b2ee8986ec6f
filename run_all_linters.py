#!/usr/bin/env python3
"""統一的檢查腳本，依序執行格式化、靜態分析與單元測試。

1. Black 格式化（--fix 時直接改寫）
2. isort 匯入排序
3. Ruff 靜態檢查
4. Pylint 靜態分析
5. pytest 單元測試
"""

from pathlib import Path
import subprocess
import sys

ROOT = Path(__file__).parent
PACKAGES = ["app", "core", "infrastructure", "main.py"]


def build_commands(fix: bool) -> list[tuple[list[str], str]]:
    """依模式組出要執行的命令清單。"""
    black = ["python", "-m", "black", "."] + ([] if fix else ["--check"])
    isort = ["python", "-m", "isort", "."] + ([] if fix else ["--check-only"])
    ruff = ["python", "-m", "ruff", "check", "."] + (["--fix"] if fix else [])
    return [
        (black, "Black 格式化"),
        (isort, "isort 匯入排序"),
        (ruff, "Ruff 靜態檢查"),
        (["python", "-m", "pylint", *PACKAGES], "Pylint 靜態分析"),
        (["python", "-m", "pytest", "-q"], "pytest 單元測試"),
    ]


def run_command(cmd: list[str], description: str) -> tuple[bool, str]:
    """執行命令並返回成功狀態和輸出。"""
    print(f"\n{'=' * 60}\n執行: {description}\n命令: {' '.join(cmd)}\n{'=' * 60}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=ROOT)
    except OSError as e:
        print(f"❌ 執行錯誤: {e}")
        return False, str(e)

    output = result.stdout + result.stderr
    print("✅ 成功" if result.returncode == 0 else "❌ 失敗")
    if output.strip():
        print(output)
    return result.returncode == 0, output


def main() -> None:
    fix = "--fix" in sys.argv[1:]
    results = [(desc, *run_command(cmd, desc)) for cmd, desc in build_commands(fix)]

    print(f"\n{'=' * 60}\n總結報告\n{'=' * 60}")
    for description, success, _ in results:
        print(f"{description}: {'✅ 通過' if success else '❌ 失敗'}")

    all_passed = all(success for _, success, _ in results)
    print(f"\n整體結果: {'✅ 全部通過' if all_passed else '❌ 有錯誤'}")
    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
