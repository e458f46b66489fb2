# accounting/__init__.py
"""
Accounting app - cash ledger and billing for the back office.

This app provides:
- BankAccount / Transaction: the ledger; balances are derived from transactions
- Quote / PaymentSchedule / Payment / PaymentAllocation: student billing
- Mission: mentor and professor work, paid through team payments
- Expense / RecurringExpense: outgoing costs
- Distribution / AdminPosition: founder profit shares and advances

Commands handle all mutations so ledger rows and the audit log stay in step.
"""
