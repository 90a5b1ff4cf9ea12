class AppStatusCode:
    DATA_RETRIEVED_SUCCESSFULLY = "100"
    OPERATION_SUCCESSFUL = "101"

    OPERATION_FAILED = "200"
    INVALID_INPUT = "201"
    REQUIRED_VALIDATION_ERROR = "202"
    DUPLICATE_ADD_ERROR = "203"
    NOT_FOUND = "204"

    # Billing
    IDENTITY_UNRESOLVED = "300"
    ANALYSIS_FAILED = "301"
    SAVE_FAILED = "302"
    CONFIRMATION_REQUIRED = "303"
    CONCURRENT_UPDATE = "304"
