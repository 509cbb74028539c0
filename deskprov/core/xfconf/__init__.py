"""xfconf channel documents — typed properties, fragments, batched patching.

    from deskprov.core.xfconf.patcher import ConfigDocumentPatcher, patch_document
    from deskprov.core.xfconf.daemon import ConfigStoreDaemon
"""
