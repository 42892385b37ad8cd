import subprocess
import sys

PACKAGE = "pagespy"

# (description, commande) dans l'ordre d'exécution
STEPS = [
    ("Formatting Code", ["ruff", "format", "."]),
    ("Linting Code", ["ruff", "check", ".", "--fix"]),
    ("Checking Types", ["mypy", PACKAGE]),
    ("Running Tests", [sys.executable, "-m", "pytest", f"{PACKAGE}/tests"]),
    # -x : les tests contiennent des asserts normaux ; -ll/-ii : sévérité/confiance Low minimum
    ("Security Scan", ["bandit", "-r", PACKAGE, "-x", f"{PACKAGE}/tests", "-ll", "-ii"]),
]


def run_step(desc: str, cmd: list[str]) -> bool:
    print(f"\n--- {desc} ---")
    try:
        subprocess.check_call(cmd)  # nosec B603: commandes fixes, pas d'entrée utilisateur
    except FileNotFoundError:
        print(f"❌ FAIL ({cmd[0]} introuvable)")
        return False
    except subprocess.CalledProcessError:
        print("❌ FAIL")
        return False
    print("✅ OK")
    return True


def main(argv: list[str]) -> int:
    """
    Chaîne qualité locale. `--skip <desc>` permet d'ignorer une étape
    (ex: --skip "Security Scan").
    """
    skipped = {argv[i + 1] for i, a in enumerate(argv[:-1]) if a == "--skip"}

    for desc, cmd in STEPS:
        if desc in skipped:
            print(f"\n--- {desc} --- (skipped)")
            continue
        if not run_step(desc, cmd):
            return 1

    print("\n✨ Qualité validée ! Prêt pour le commit.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
