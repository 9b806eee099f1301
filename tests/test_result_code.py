from app.core.result_code import ResultCode


def test_codes_are_unique():
    codes = [member.code for member in ResultCode]

    assert len(codes) == len(set(codes))


def test_code_ranges():
    assert ResultCode.SUCCESS.code == 200
    for member in ResultCode:
        if member.name.startswith(("USER_", "INVALID_", "TOKEN_", "FILE_", "DATA_", "OPTIMISTIC_", "BUSINESS_")):
            assert member.code >= 1000, member.name
    assert 400 <= ResultCode.VALIDATION_FAILED.code < 500
    assert 500 <= ResultCode.SERVICE_UNAVAILABLE.code < 600


def test_stable_assignments():
    assert (ResultCode.BAD_REQUEST.code, ResultCode.NOT_FOUND.code) == (400, 404)
    assert ResultCode.METHOD_NOT_ALLOWED.code == 405
    assert ResultCode.VALIDATION_FAILED.code == 422
    assert ResultCode.INTERNAL_SERVER_ERROR.code == 500
    assert ResultCode.BUSINESS_ERROR.code == 1000
    assert ResultCode.TOKEN_EXPIRED.code == 1011
    assert ResultCode.FILE_SIZE_EXCEEDED.code == 1022
    assert ResultCode.OPTIMISTIC_LOCK_FAILED.code == 1040


def test_lookup_by_name_and_code():
    assert ResultCode["USER_NOT_FOUND"] is ResultCode.USER_NOT_FOUND
    assert ResultCode.from_code(1001) is ResultCode.USER_NOT_FOUND
    assert ResultCode.from_code(9999) is None


def test_every_member_has_a_message():
    assert all(member.message for member in ResultCode)
