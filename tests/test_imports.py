def test_imports():
    """
    @brief
    Verifies that all core Alloclean modules are importable.

    @details
    Ensures package structure integrity: every layer from the schema models
    up to the session state and export resolves without import errors or
    import cycles.
    """
    import alloclean.correction.engine
    import alloclean.dataloader.records_loader
    import alloclean.export.dataset_export
    import alloclean.priorities.weights
    import alloclean.rules.repository
    import alloclean.session.state
    import alloclean.validator.orchestrator

    # --- Assert ---
    assert all(
        [
            alloclean.correction.engine,
            alloclean.dataloader.records_loader,
            alloclean.export.dataset_export,
            alloclean.priorities.weights,
            alloclean.rules.repository,
            alloclean.session.state,
            alloclean.validator.orchestrator,
        ]
    )
