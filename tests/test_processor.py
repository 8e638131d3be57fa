import pytest

from usermgr.errors import (
    IncorrectProgramId,
    InvalidInstructionData,
    MissingRequiredSignature,
    NotEnoughAccountKeys,
    ProgramError,
    UserManagerError,
    UserManagerException,
)
from usermgr.instruction import CreateProfile, UpdateBalance, encode_instruction
from usermgr.processor import (
    SYSTEM_PROGRAM_ID,
    AccountInfo,
    Processor,
    Rent,
    Runtime,
    process_instruction,
)
from usermgr.state import UserProfile

PROGRAM_ID = "Program1111111111111111111111111"
TIMESTAMP = 1_700_000_000
FUNDS = 2_000_000_000


@pytest.fixture
def runtime():
    return Runtime(unix_timestamp=TIMESTAMP)


@pytest.fixture
def user():
    return AccountInfo(key="user", is_signer=True)


@pytest.fixture
def payer():
    return AccountInfo(key="payer", is_signer=True, lamports=FUNDS)


def _expected_profile(username, email):
    profile = UserProfile.create(TIMESTAMP, username, email)
    profile.created_at = TIMESTAMP
    profile.last_login = TIMESTAMP
    return profile


def test_rent_scales_with_threshold():
    single = Rent(exemption_threshold=1.0).minimum_balance(10)
    double = Rent(exemption_threshold=2.0).minimum_balance(10)
    assert double == 2 * single


def test_rent_grows_with_size():
    rent = Rent()
    assert rent.minimum_balance(UserProfile.MAX_SIZE) > rent.minimum_balance(0)


def test_runtime_create_account(runtime, user, payer):
    runtime.create_account(payer, user, 500, 20, PROGRAM_ID)
    assert payer.lamports == FUNDS - 500
    assert user.lamports == 500
    assert user.data == bytearray(20)
    assert user.owner == PROGRAM_ID


def test_runtime_create_account_insufficient(runtime, user):
    poor = AccountInfo(key="poor", is_signer=True, lamports=1)
    with pytest.raises(ProgramError):
        runtime.create_account(poor, user, 500, 20, PROGRAM_ID)
    assert user.owner == SYSTEM_PROGRAM_ID


def test_runtime_create_account_in_use(runtime, payer):
    used = AccountInfo(key="used", is_signer=True, data=b"\x01")
    with pytest.raises(ProgramError):
        runtime.create_account(payer, used, 500, 20, PROGRAM_ID)
    assert payer.lamports == FUNDS


def test_create_profile(runtime, user, payer):
    Processor(runtime).create_profile(PROGRAM_ID, [user, payer], "alice", "alice@example.com")
    required = runtime.rent.minimum_balance(UserProfile.MAX_SIZE)
    assert len(user.data) == UserProfile.MAX_SIZE
    assert user.owner == PROGRAM_ID
    assert user.lamports == required
    assert payer.lamports == FUNDS - required
    expected = _expected_profile("alice", "alice@example.com").to_bytes()
    assert bytes(user.data[: len(expected)]) == expected
    assert UserProfile.from_bytes(bytes(user.data[: len(expected)])).user_id == TIMESTAMP
    assert runtime.logs[-1] == f"User created successfully. ID: {TIMESTAMP}"


@pytest.mark.parametrize(
    "username, email, error",
    [
        ("u" * 33, "a@example.com", UserManagerError.USERNAME_TOO_LONG),
        ("alice", "e" * 65 + "@example.com", UserManagerError.EMAIL_TOO_LONG),
        ("alice", "alice.example.com", UserManagerError.INVALID_EMAIL),
    ],
)
def test_create_profile_validation(runtime, user, payer, username, email, error):
    with pytest.raises(UserManagerException) as info:
        Processor(runtime).create_profile(PROGRAM_ID, [user, payer], username, email)
    assert info.value.error is error
    assert user.data == bytearray()


def test_create_profile_requires_payer_signature(runtime, user):
    payer = AccountInfo(key="payer", is_signer=False, lamports=FUNDS)
    with pytest.raises(MissingRequiredSignature):
        Processor(runtime).create_profile(PROGRAM_ID, [user, payer], "alice", "a@example.com")
    assert payer.lamports == FUNDS


def test_create_profile_already_initialized(runtime, payer):
    taken = AccountInfo(key="taken", is_signer=True, data=b"\x00\x00")
    with pytest.raises(UserManagerException) as info:
        Processor(runtime).create_profile(PROGRAM_ID, [taken, payer], "alice", "a@example.com")
    assert info.value.error is UserManagerError.ALREADY_INITIALIZED


def test_create_profile_needs_two_accounts(runtime, user):
    with pytest.raises(NotEnoughAccountKeys):
        Processor(runtime).create_profile(PROGRAM_ID, [user], "alice", "a@example.com")


def test_get_profile_on_initialized_account(runtime, user, payer):
    processor = Processor(runtime)
    processor.create_profile(PROGRAM_ID, [user, payer], "alice", "a@example.com")
    with pytest.raises(UserManagerException) as info:
        processor.get_profile(PROGRAM_ID, [user])
    assert info.value.error is UserManagerError.ALREADY_INITIALIZED


def test_get_profile_wrong_owner(runtime, user):
    with pytest.raises(IncorrectProgramId):
        Processor(runtime).get_profile(PROGRAM_ID, [user])


def test_get_profile_empty_owned_account(runtime):
    empty = AccountInfo(key="empty", owner=PROGRAM_ID)
    with pytest.raises(ProgramError) as info:
        Processor(runtime).get_profile(PROGRAM_ID, [empty])
    assert not isinstance(info.value, UserManagerException)


def test_update_balance_requires_signature(runtime):
    unsigned = AccountInfo(key="u", is_signer=False, owner=PROGRAM_ID)
    with pytest.raises(MissingRequiredSignature):
        Processor(runtime).update_balance(PROGRAM_ID, [unsigned], 10, True)


def test_update_profile_requires_signature(runtime):
    unsigned = AccountInfo(key="u", is_signer=False, owner=PROGRAM_ID)
    with pytest.raises(MissingRequiredSignature):
        Processor(runtime).update_profile(PROGRAM_ID, [unsigned], "bob", None, None)


def test_delete_profile_on_initialized_account(runtime, user, payer):
    processor = Processor(runtime)
    processor.create_profile(PROGRAM_ID, [user, payer], "alice", "a@example.com")
    destination = AccountInfo(key="dest")
    lamports = user.lamports
    with pytest.raises(UserManagerException) as info:
        processor.delete_profile(PROGRAM_ID, [user, destination])
    assert info.value.error is UserManagerError.ALREADY_INITIALIZED
    assert user.lamports == lamports
    assert destination.lamports == 0


def test_delete_profile_needs_destination(runtime, user):
    with pytest.raises(NotEnoughAccountKeys):
        Processor(runtime).delete_profile(PROGRAM_ID, [user])


def test_process_create_profile(runtime, user, payer):
    data = encode_instruction(CreateProfile("alice", "alice@example.com"))
    process_instruction(PROGRAM_ID, [user, payer], data, runtime)
    expected = _expected_profile("alice", "alice@example.com").to_bytes()
    assert bytes(user.data[: len(expected)]) == expected


def test_process_swallows_handler_errors(runtime, user):
    payer = AccountInfo(key="payer", is_signer=False, lamports=FUNDS)
    data = encode_instruction(CreateProfile("alice", "alice@example.com"))
    Processor(runtime).process(PROGRAM_ID, [user, payer], data)
    assert user.data == bytearray()
    assert payer.lamports == FUNDS
    assert runtime.logs == []


def test_process_update_balance_leaves_accounts_untouched(runtime, user):
    data = encode_instruction(UpdateBalance(amount=5, is_deposit=True))
    Processor(runtime).process(PROGRAM_ID, [user], data)
    assert user.lamports == 0
    assert user.data == bytearray()


def test_process_rejects_bad_instruction_data(runtime, user):
    with pytest.raises(InvalidInstructionData):
        process_instruction(PROGRAM_ID, [user], b"\x07", runtime)