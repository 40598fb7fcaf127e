import io

from dupescan.flags import ActionFlags, Flags, PrintFlags, Settings, dump_all_flags


def _dump(settings):
    buf = io.StringIO()
    dump_all_flags(settings, buf)
    return buf.getvalue()


def test_dump_empty_settings():
    assert _dump(Settings()) == "\nSet flag dump: [end of list]\n\n"


def test_dump_mixed_flags():
    settings = Settings(
        flags=Flags.RECURSE | Flags.HIDEPROGRESS,
        actions=ActionFlags.PRINTNULL,
        print_flags=PrintFlags.FULLHASH,
    )
    assert _dump(settings) == (
        "\nSet flag dump: F_RECURSE F_HIDEPROGRESS FA_PRINTNULL PF_FULLHASH [end of list]\n\n"
    )


def test_dump_all_names_present_in_order():
    all_flags = Flags(0)
    for member in Flags:
        all_flags |= member
    text = _dump(Settings(flags=all_flags))
    for member in Flags:
        assert f" F_{member.name}" in text
    assert text.index("F_RECURSE") < text.index("F_DEBUG")


def test_dump_unset_flags_absent():
    text = _dump(Settings(actions=ActionFlags.DELETEFILES))
    assert "FA_DELETEFILES" in text
    assert "FA_PRINTMATCHES" not in text
    assert "F_RECURSE" not in text


def test_fail_sets_exit_status():
    settings = Settings()
    settings.fail()
    assert settings.exit_status == 1