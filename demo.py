from __future__ import annotations

from bookloop import LibrarySystem, configure_logging, seed_demo_data


def demo_flow() -> None:
    configure_logging()
    lib = LibrarySystem()
    seed_demo_data(lib)

    # Inventory
    print("\n[demo] inventory:")
    for book in lib.books():
        print(f"  - {book.title}: total={book.total_copies}, available={book.available_copies}")

    # Alice tries to renew Meditations while Bob waits for it
    lib.login("alice@example.com")
    alice = lib.current_user
    loans = {l.book_id: l for l in lib.loans_of(alice.user_id)}
    attempt = lib.renew(loans["bk_meditations"].loan_id)
    print("\n[demo] Alice renews Meditations with Bob queued:", attempt.message or "SUCCESS")

    # Return the overdue Dune loan -> fine
    dune = loans["bk_dune"]
    print(f"\n[demo] Dune fine before return: {lib.fine_of(dune)}")
    lib.return_loan(dune.loan_id)
    lib.return_loan(loans["bk_meditations"].loan_id)
    print("[demo] Alice's fines:", [(f.days_overdue, f.amount) for f in lib.fines_of(alice.user_id)])

    # Alice can't jump Bob's queue; Bob can borrow
    print("[demo] Alice borrows Meditations again:", lib.borrow("bk_meditations").message or "SUCCESS")
    lib.login("bob@example.com")
    print("[demo] Bob borrows Meditations:", "SUCCESS" if lib.borrow("bk_meditations") else "DENIED")
    print("[demo] queue now:", lib.queue_for("bk_meditations"))


if __name__ == "__main__":
    demo_flow()
