"""Console entry point: `merkleproof root|prove|verify|version`.

Also runnable as `python -m merkleproof.cli`, which the conformance runner
uses to replay vectors against the installed verifier.
"""


def main():
    from merkleproof.commands import merkleproof_app

    merkleproof_app()


if __name__ == "__main__":
    main()
