from .score_sheet import ScoreSheetProcessor
