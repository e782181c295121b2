"""
Formula services — one module per pipeline stage.

    source.prepare_source      → local tree or verified tarball
    toolchain.check_toolchain  → build dependencies on PATH
    build_driver.build         → cmake configure / build / install
    installer.install          → post_install.sh under the prefix
    registrar                  → /etc/shells registration
    caveats.render_caveats     → post-install guidance
    verification.run_tests     → black-box checks on the binary
"""
