"""RecordGate — role-scoped record submission service.

Submitters hand in records, reviewers read everything, and guardians
read the records of the submitters they are linked to. This package
is the auth gate and the data-scoping layer behind that rule.
"""

__version__ = "0.1.0"
