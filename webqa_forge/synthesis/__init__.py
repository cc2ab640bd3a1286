from .test_synthesizer import (
    SynthesisOutcome,
    TemplateRenderer,
    TestKind,
    TestSynthesizer,
    quote_literal,
    synthesize,
)

__all__ = ["TestSynthesizer", "TestKind", "TemplateRenderer", "SynthesisOutcome", "quote_literal", "synthesize"]
