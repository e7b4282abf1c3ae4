def validate_length(field_name, value, max_length):
    if len(value) > max_length:
        raise ValueError(f"{field_name} must be {max_length} characters or fewer.")


def validate_time_limit(minutes):
    if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
        raise ValueError("Time limit must be a positive number of minutes.")


def validate_correct_option(index):
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= 3:
        raise ValueError("'correct_option_index' must be between 0 and 3.")
