"""
Service layer.

  - transaction_service: the lifecycle processor and transaction log
    queries.  The only writer of asset status and holder.
  - asset_service: registration, descriptive edits, guarded deletion
    and asset queries.

Routes call into these modules and never change asset state themselves::

    from itam.services import asset_service, transaction_service
"""
