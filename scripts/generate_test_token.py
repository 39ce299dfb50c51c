#!/usr/bin/env python3
"""Generate test JWT tokens for API testing."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from signoff.core.auth import Role
from signoff.api.deps import issue_smoke_token

admin_token = issue_smoke_token("16041988", role=Role.ADMIN, name="System Administrator")
print(f"Admin Token:\n{admin_token}\n")

user_id = sys.argv[1] if len(sys.argv) > 1 else "12345678"
user_token = issue_smoke_token(user_id, role=Role.USER)
print(f"Employee Token ({user_id}):\n{user_token}")
