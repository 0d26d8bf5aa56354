from buildmeta.observability import StructuredLogger


def test_structured_logger_filters_by_operation() -> None:
    logger = StructuredLogger()
    logger.log(operation="dylib_paths", message="first", level="warn")
    logger.log(operation="from_summary", message="second", extra={"triple": "x"})

    records = logger.records_for_operation("from_summary")
    assert records == [
        {"level": "info", "operation": "from_summary", "message": "second", "extra": {"triple": "x"}}
    ]
