# usermgr

A small library for user profiles kept in fixed-size accounts. It has no
dependencies outside the standard library.

## Modules

- **`usermgr.state`**: the `UserProfile` and `UserPreferences` dataclasses, the
  `Theme` and `Language` enums, and their little-endian, length-prefixed binary
  layout (`to_bytes` / `from_bytes`). `from_bytes` raises `ValueError` on
  truncated data, bad enum or bool values, or trailing bytes.
  `UserProfile.MAX_SIZE` (145) and `UserPreferences.MAX_SIZE` (4) give the
  largest encoded sizes. `UserProfile.create(user_id, username, email)` makes a
  profile with zero balance and default preferences (light theme, English,
  notifications on, privacy level 3).
- **`usermgr.instruction`**: the instructions `CreateProfile`, `GetProfile`,
  `UpdateProfile`, `UpdateBalance` and `DeleteProfile` (frozen dataclasses),
  with `encode_instruction` and `decode_instruction`. Each encoding starts with
  a one-byte tag, 0 to 4 in that order. `decode_instruction` raises
  `InvalidInstructionData` for malformed data.
- **`usermgr.processor`**: `AccountInfo` (key, signer and writable flags,
  lamports, data, owner), `Rent` (`minimum_balance(data_len)` is
  `(128 + data_len) * lamports_per_byte_year * exemption_threshold`), `Runtime`
  (a Unix timestamp, the rent parameters, a `logs` list filled by `log()`, and
  `create_account`), the `Processor`, and the entry point
  `process_instruction(program_id, accounts, instruction_data, runtime)`.
- **`usermgr.errors`**: the `UserManagerError` codes (numbered 0 to 8, each with
  `message()`) and the exceptions `UserManagerException`,
  `MissingRequiredSignature`, `IncorrectProgramId`, `ArithmeticOverflow`,
  `NotEnoughAccountKeys` and `InvalidInstructionData`, all derived from
  `ProgramError`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Processor behaviour

The `Processor` methods raise a `ProgramError` subclass when a check fails:

- Too few accounts: `NotEnoughAccountKeys`.
- Usernames over 32 bytes (UTF-8): `USERNAME_TOO_LONG`. E-mail addresses over
  64 bytes: `EMAIL_TOO_LONG`; without `@`: `INVALID_EMAIL`.
- `create_profile` needs a signing payer and an empty user account. It then
  calls `Runtime.create_account`, which also needs the user account to sign and
  the payer to hold enough lamports, funds the account with the rent-exempt
  balance for `UserProfile.MAX_SIZE` bytes, hands it to the program and writes a
  profile whose `user_id` is the low 32 bits of the runtime's timestamp.
- `update_profile`, `update_balance` and `delete_profile` need the user account
  to sign; all three, and `get_profile`, then require the account data to be
  empty (otherwise `ALREADY_INITIALIZED`) and owned by the program (otherwise
  `IncorrectProgramId`) before decoding the profile from it. An account holding
  a profile therefore fails the first check, and an empty one fails decoding
  with a `ProgramError`.
- Privacy levels above 5: `INVALID_PRIVACY_LEVEL`. Deposits saturate at the
  64-bit maximum; withdrawing more than the balance: `INSUFFICIENT_FUNDS`.
- Deleting moves the account's lamports to the destination account
  (`ArithmeticOverflow` past the 64-bit maximum) and zeroes the data.

`Processor.process` and `process_instruction` raise only
`InvalidInstructionData`. A `ProgramError` from a handler is swallowed: the
instruction counts as done, and any change made before the failure stays.

## What it does not do

There is no network client and no command-line tool. Accounts, clock and rent
live in memory in `AccountInfo` and `Runtime` objects that the caller builds.

## Instruction round trip

```python
from usermgr.instruction import CreateProfile, encode_instruction, decode_instruction

data = encode_instruction(CreateProfile(username="alice", email="alice @ example.com".replace(" ", "")))
assert decode_instruction(data) == CreateProfile(username="alice", email="alice@example.com")
```