import subprocess
import sys
import os

def run_test(script_path):
    print(f"Running {script_path}...")
    result = subprocess.run([sys.executable, script_path], capture_output=True, text=True)
    if result.returncode == 0:
        print(f"✓ {script_path} passed")
        return True
    else:
        print(f"✗ {script_path} failed")
        print(result.stdout[-2000:])
        print(result.stderr)
        return False

def main():
    os.chdir(os.path.dirname(os.path.abspath(__file__)))
    suites = []
    if "--regression-only" not in sys.argv:
        suites.append("tests/experiments")
    suites.insert(0, "tests/regression")

    tests = []
    for suite in suites:
        tests += sorted(os.path.join(suite, f) for f in os.listdir(suite)
                        if f.startswith("test_") and f.endswith(".py"))

    print(f"Running {len(tests)} test scripts...")
    passed = 0
    for test in tests:
        if run_test(test):
            passed += 1

    print(f"\nSummary: {passed}/{len(tests)} tests passed.")

    if passed == len(tests):
        sys.exit(0)
    else:
        sys.exit(1)

if __name__ == "__main__":
    main()
