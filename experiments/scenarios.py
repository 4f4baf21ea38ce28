# expected outcome per scenario: HTTP status of the step under test
SCENARIOS = {
    "valid": {"expect": 200},
    "replay": {"expect": 401, "reuse_challenge": True},
    "wrong_key": {"expect": 401, "foreign_signer": True},
    "subject_mismatch": {"expect": 403, "other_subject": True},
    "validity_out_of_range": {"expect": 400, "validity_days": 5000},
    "tampered_vc": {"expect": 200, "tamper": True, "valid": False},
}
