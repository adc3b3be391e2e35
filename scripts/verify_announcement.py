"""Verify the stored announcement and every stored ballot offline."""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from voting_portal.core.config import get_settings
from voting_portal.services.container import build_services
from voting_portal.services.tally import aggregate


def main() -> int:
    services = build_services(get_settings())
    failures = 0

    ballots = services.store.list_ballots()
    for ballot in ballots:
        if not services.ballots.verify_ballot(ballot):
            failures += 1
            print(f"ballot for {ballot.voter_identifier}: INVALID")
    print(f"{len(ballots) - failures}/{len(ballots)} ballots verified")

    published = services.tally.published()
    if not published.announced:
        print("no announcement published")
    elif not published.signature_valid:
        failures += 1
        print("announcement signature: INVALID")
    else:
        print(f"announcement signature: valid ({published.announcement.announced_at})")
        if published.announcement.tally != aggregate(ballots):
            print("note: ballots have changed since the announcement")

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
