import plistlib

from iconforge.bundle import bundle_stem, locate_bundle_icon


def make_app(tmp_path, info=None, raw=None):
    app = tmp_path / "Foo Bar.app"
    contents = app / "Contents"
    contents.mkdir(parents=True)
    if info is not None:
        with (contents / "Info.plist").open("wb") as f:
            plistlib.dump(info, f)
    elif raw is not None:
        (contents / "Info.plist").write_bytes(raw)
    return app


def test_bundle_stem(tmp_path):
    assert bundle_stem(tmp_path / "Foo.app") == "Foo"
    assert bundle_stem(tmp_path / "Foo") == "Foo"


def test_reads_display_name_and_icon_file(tmp_path):
    app = make_app(tmp_path, {"CFBundleDisplayName": "Foo", "CFBundleIconFile": "Foo"})
    name, icon = locate_bundle_icon(app)
    assert name == "Foo"
    assert icon == app / "Contents" / "Resources" / "Foo.icns"


def test_keeps_existing_icns_extension(tmp_path):
    app = make_app(tmp_path, {"CFBundleName": "Bar", "CFBundleIconFile": "Icon.icns"})
    name, icon = locate_bundle_icon(app)
    assert name == "Bar"
    assert icon.name == "Icon.icns"


def test_binary_plist(tmp_path):
    app = tmp_path / "Bin.app"
    (app / "Contents").mkdir(parents=True)
    with (app / "Contents" / "Info.plist").open("wb") as f:
        plistlib.dump({"CFBundleIconFile": "AppIcon"}, f, fmt=plistlib.FMT_BINARY)
    name, icon = locate_bundle_icon(app)
    assert name == "Bin"
    assert icon.name == "AppIcon.icns"


def test_missing_plist_falls_back(tmp_path):
    app = make_app(tmp_path)
    name, icon = locate_bundle_icon(app)
    assert name == "Foo Bar"
    assert icon == app / "Contents" / "Resources" / "AppIcon.icns"


def test_corrupt_plist_falls_back(tmp_path):
    app = make_app(tmp_path, raw=b"<plist><dict><key>oops")
    name, icon = locate_bundle_icon(app)
    assert name == "Foo Bar"
    assert icon.name == "AppIcon.icns"


def test_non_string_plist_values_fall_back(tmp_path):
    app = make_app(tmp_path, {"CFBundleDisplayName": 42, "CFBundleIconFile": ["Foo"]})
    name, icon = locate_bundle_icon(app)
    assert name == "Foo Bar"
    assert icon == app / "Contents" / "Resources" / "AppIcon.icns"
