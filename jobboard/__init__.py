"""Job board core: profiles, job postings, applications, interviews and the email ledger."""
