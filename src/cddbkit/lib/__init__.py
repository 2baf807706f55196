"""Protocol-level library modules.

``discid`` holds the disc fingerprint arithmetic and has no dependencies.
``record`` parses and serializes CDDB record text into ``Disc`` models.

Consumers should import directly from submodules::

    from cddbkit.lib.discid import compute_disc_id
    from cddbkit.lib.record import parse_record, serialize_record
"""
