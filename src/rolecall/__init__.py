"""Role-based user lookups against an LDAP directory."""
