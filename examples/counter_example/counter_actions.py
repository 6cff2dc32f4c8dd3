from rxstore import create_action

increment = create_action("[Counter] Increment")
decrement = create_action("[Counter] Decrement")
reset = create_action("[Counter] Reset", lambda value=0: value)
increment_by = create_action("[Counter] Increment By")
load_count_request = create_action("[Counter] Load Count Request")
load_count_success = create_action("[Counter] Load Count Success")
load_count_failure = create_action("[Counter] Load Count Failure")
