from partsbox.domain.models import RecognitionSummary
from partsbox.session.draft import DraftForm


def test_quantity_text_accepts_positive_digits():
    form = DraftForm()
    assert form.set_quantity_text("12") == "12"
    assert form.quantity == 12


def test_quantity_text_rejects_bad_input_and_restores_last_value():
    form = DraftForm()
    form.set_quantity_text("7")
    for bad in ("", "0", "-3", "3a", "１２", " 4", "2.5"):
        assert form.set_quantity_text(bad) == "7"
        assert form.quantity == 7


def test_stepper_never_goes_below_one():
    form = DraftForm()
    form.set_quantity(0)
    assert form.quantity == 1
    assert form.quantity_text == "1"
    form.set_quantity(5)
    assert form.quantity_text == "5"


def test_apply_summary_keeps_user_values_for_unknown_fields():
    form = DraftForm(spec="手動規格", function="手動功能")
    form.apply_summary(RecognitionSummary(name="電阻", spec="", function="N/A"))
    assert (form.name, form.spec, form.function) == ("電阻", "手動規格", "手動功能")

    form.apply_summary(RecognitionSummary(name="電容", spec="10uF", function="濾波"))
    assert (form.name, form.spec, form.function) == ("電容", "10uF", "濾波")


def test_make_draft_trims_and_defaults_function():
    form = DraftForm(name="  電阻 ", spec=" 1K ", function="   ")
    draft = form.make_draft()
    assert (draft.name, draft.spec, draft.function) == ("電阻", "1K", "")
    assert draft.stored_function == "N/A"
    assert draft.is_complete


def test_blank_name_is_not_committable():
    assert not DraftForm(name="   ").is_committable
    assert DraftForm(name="LED").is_committable


def test_reset_restores_defaults():
    form = DraftForm(name="A", spec="B", function="C")
    form.set_quantity_text("9")
    form.reset()
    assert form == DraftForm()


def test_zero_quantity_is_not_committable():
    form = DraftForm(name="LED", quantity=0)
    assert not form.is_committable
    assert not form.make_draft().is_complete
