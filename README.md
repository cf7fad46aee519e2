# accessvault

This package is the data layer of a role-based access-control service. It
stores users and roles in MongoDB. It also provides the model for audit
records, helpers that build MongoDB queries, and JSON bodies for HTTP error
responses.

## Installation

```
pip install accessvault
```

To run the test suite, install the `test` extra and run pytest:

```
pip install "accessvault[test]"
pytest
```

## Models

Each model converts to and from a MongoDB document with `to_document()` and
`from_document()`.

- `accessvault.role_model.Role` has a name, an optional description and an
  optional list of permission ObjectIds. `Role.create(name, description, permissions)`
  takes ObjectIds. `Role.from_request(name, description, permission_ids)` takes
  strings and drops any string that is not a valid ObjectId.
- `accessvault.user_model.User` has a username, password, optional email and
  names, optional role ObjectIds and an `enabled` flag. `User.create(...)` takes
  role ids as strings and drops any string that is not a valid ObjectId.
  `User.from_registration(...)` creates an enabled user with no roles.
- `accessvault.audit_model.Audit` records an `Action` (create, update or
  delete) taken on a resource. The resource is described by a `ResourceType`
  and a `ResourceIdType`. `Audit.create(...)` gives the record a new id and the
  current UTC time.

```python
from bson import ObjectId
from accessvault.role_model import Role
from accessvault.user_model import User

reader = Role.create("reader", "Read-only access", [ObjectId()])

password = "password"
alice = User.create(
    "alice", "alice@example.com", "Alice", None,
    password=password, roles=[str(reader.id)], enabled=True,
)
```

## Repositories

`accessvault.role_repository.RoleRepository` and
`accessvault.user_repository.UserRepository` each take the name of their
collection. They work on a `pymongo` `Database` that you pass to every call.
`UserRepository` also takes an email pattern, either as a string or as a
compiled regular expression.

```python
import re
from pymongo import MongoClient
from accessvault.role_repository import RoleRepository
from accessvault.user_repository import UserRepository

db = MongoClient("mongodb://localhost:27017")["accessvault"]

roles = RoleRepository("roles")
users = UserRepository("users", re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"))

stored_role = roles.create(reader, db)
stored_user = users.create(alice, db)

# Deleting a role also removes it from every user.
roles.delete(str(stored_role.id), db, users)
```

The repositories behave as follows:

- Name and username lookups ignore case. Email lookups are exact.
- `create` refuses a name, username or email that is already taken, and
  returns the record as read back from the database.
- `update` returns the document as it was before the update.
- `UserRepository.update` refuses an email address that any stored user
  already has.
- `find_all` and `search` take an optional `limit` and a one-based `page`.
- `search` needs a text index on the collection.
- `RoleRepository.delete_permission_from_all_roles` removes a permission id
  from every role.
- `UserRepository.delete_role_from_all_users` removes a role id from every user.

Each repository reports failures by raising its own exception family:

- `RoleRepositoryError` is the base of `NameAlreadyTakenError`,
  `RoleNotFoundError`, `InvalidRoleIdError` and the others.
- `UserRepositoryError` is the base of `UsernameAlreadyTakenError`,
  `EmailAlreadyTakenError`, `InvalidEmailError` and the others.

Driver errors are wrapped in `RoleDatabaseError` or `UserDatabaseError`.

## Query helpers

`accessvault.queries` provides the following helpers:

- `compute_skip(limit, page)` and `find_kwargs(limit, page)` work out paging.
- `exact_match_filter(field, value)` builds a case-insensitive exact-match
  filter.
- `text_search_filter(text)` builds a full-text filter.
- `parse_object_ids(values)` parses hex ids. It raises `bson.errors.InvalidId`
  on the first invalid one.

## Error bodies

`BadRequest` and `InternalServerError` from `accessvault.error_responses`
produce JSON-ready dicts through `to_dict()`. Each dict has `message`, a UTC
ISO 8601 `timestamp` and `errorCode` (400 or 500).

## What this package does not do

- It does not store permissions. Roles hold permission ids, but the package has
  no permission model and no permission repository.
- It has a model for audit records but does not store them.
- It does not read service configuration, for example from environment
  variables.
- It has no HTTP server and no command-line entry point.