"""Entry point: oneshot <term> | url <query-string>."""

import sys


def main():
    mode = "oneshot"
    if len(sys.argv) > 1:
        mode = sys.argv[1].lower()

    if mode == "oneshot":
        from catalog_search.interfaces.oneshot import main as run_oneshot_main

        term_parts = sys.argv[2:]
        term = " ".join(term_parts).strip() if term_parts else sys.stdin.read().strip()
        sys.exit(run_oneshot_main(term=term))

    elif mode == "url":
        from catalog_search.interfaces.oneshot import main as run_oneshot_main

        if len(sys.argv) < 3:
            print("Usage: python -m catalog_search.main url '?term=...&resource=...'")
            sys.exit(1)
        sys.exit(run_oneshot_main(term="", url=sys.argv[2]))

    else:
        print(f"Unknown mode: {mode}")
        print("Usage: python -m catalog_search.main [oneshot|url]")
        sys.exit(1)


if __name__ == "__main__":
    main()
