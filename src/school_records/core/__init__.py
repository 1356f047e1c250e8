"""Pure computation: identifier formatting, aggregation, config resolution, rubric mapping"""
