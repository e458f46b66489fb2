# accounts/__init__.py
"""
Accounts app - Authentication and multi-tenancy.

This app provides:
- Company: Tenant/organization model
- User: Custom user model with active_company
- CompanyMembership: User-Company relationship with a role
- AccessPermission: Fine-grained permissions
- ActorContext: Authorization context utilities
"""
